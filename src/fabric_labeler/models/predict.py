"""
predict.py - Detector adapter feeding the auto-label review

This module wraps an Ultralytics YOLO model (.pt weights plus the dataset.yaml
it was trained with) and turns its output into pixel detections, the format
Annotator.start_auto_label_review() consumes:

	{"x", "y", "width", "height", "classId", "className", "confidence"}

x/y are the top-left corner and everything is in pixels of the original image.

Notes:
- ultralytics is imported when a prediction runs, so the rest of the labeler
  works without it installed.
- Model class indices are translated to the project's label list; class
  names the project does not know yet are appended to config["LABELS"].

Example usage:
	predictor = PredictorManager('models/dataset.yaml', 'models/fabric.pt')
	detections = predictor('images/roll_0001.jpg')
	annotator.start_auto_label_review(detections)
"""
import logging

from fabric_labeler.constants import config
from fabric_labeler.tools.project_config import load_project_config

logger = logging.getLogger(__name__)


class PredictorManager:
	def __init__(self, yaml_file, pt_file, min_confidence=None):
		'''
		Manages loading YOLO models and running predictions in coordination with
		the application state.
		'''
		self.yaml_file = yaml_file
		self.pt_file = pt_file
		self.min_confidence = config["MIN_CONFIDENCE"] if min_confidence is None else min_confidence
		self.model = None
		self.indexes = self.map_indexes()

	def parse_yaml_labels(self):
		"""
		Parses the model's dataset.yaml and returns a list of label names in index order.
		"""
		data = load_project_config(self.yaml_file, target={})
		return data.get("LABELS", [])

	def map_indexes(self):
		"""
		Returns a list of dictionaries mapping model label indices to user label indices.
		Each dict has keys: 'ORIGINAL_IDX' (int, model label index), 'MAPPED_IDX' (int, user label index)
		and 'LABEL' (str).
		"""
		model_labels = self.parse_yaml_labels()
		user_labels = config.setdefault("LABELS", [])

		mapping = []
		for idx, label in enumerate(model_labels):
			if label in user_labels:
				mapped_idx = user_labels.index(label)
			else:
				user_labels.append(label)
				mapped_idx = len(user_labels) - 1
			mapping.append({"ORIGINAL_IDX": idx, "MAPPED_IDX": mapped_idx, "LABEL": label})
		return mapping

	def get_indexes_mapping(self):
		return self.indexes

	def reformat_results(self, result):
		"""
		Converts a YOLO Results object into pixel detections.
		Boxes below the confidence threshold or with an unknown class are dropped.
		"""
		detections = []
		if getattr(result, 'boxes', None) is None:
			return detections
		xywh = result.boxes.xywh.cpu().numpy()
		cls = result.boxes.cls.cpu().numpy().astype(int)
		conf = result.boxes.conf.cpu().numpy()
		for i in range(xywh.shape[0]):
			confidence = float(conf[i])
			idx = int(cls[i])
			if confidence < self.min_confidence or not 0 <= idx < len(self.indexes):
				continue
			x_c, y_c, w, h = (float(v) for v in xywh[i])
			mapping = self.indexes[idx]
			detections.append({
				"x": x_c - w / 2,
				"y": y_c - h / 2,
				"width": w,
				"height": h,
				"classId": mapping["MAPPED_IDX"],
				"className": mapping["LABEL"],
				"confidence": confidence,
			})
		# most confident first so the review starts with the surest boxes
		detections.sort(key=lambda d: d["confidence"], reverse=True)
		return detections

	def load_model(self):
		if self.model is None:
			from ultralytics import YOLO
			self.model = YOLO(self.pt_file)
		return self.model

	def __call__(self, image_path: str):
		"""
		Runs the model on image_path and returns the reformatted detections of the first result.
		"""
		model = self.load_model()
		results = model(image_path)
		detections = self.reformat_results(results[0])
		logger.info("Predicted %d boxes on %s", len(detections), image_path)
		return detections
