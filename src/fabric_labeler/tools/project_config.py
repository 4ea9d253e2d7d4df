'''
Load labeler settings and class names from a YAML project file.

The file follows the dataset.yaml layout used to train YOLO models, with
optional upper-case keys overriding entries of constants.config:

    names: [cotton, linen, silk]     # or {0: cotton, 1: linen, 2: silk}
    MIN_BOX_SIZE: 12
    KEEP_SKIPPED_EDITS: true
'''

import logging
import os

import yaml

from fabric_labeler.constants import config

logger = logging.getLogger(__name__)


def parse_names(names) -> list:
    """
    Normalise a YOLO 'names' entry into a list ordered by class index.

    'names' can be a dict (index: name) or a list; anything else yields [].
    """
    if isinstance(names, dict):
        return [names[i] for i in sorted(names.keys(), key=int)]
    if isinstance(names, list):
        return list(names)
    return []


def load_project_config(yaml_file: str, target: dict = None) -> dict:
    """
    Read a project YAML file into the configuration dictionary.

    Args:
        yaml_file (str): path of the YAML file
        target (dict): dictionary to update, constants.config by default

    Returns:
        dict: the updated dictionary

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the file does not contain a mapping
    """
    # unknown keys are only worth a warning against the global settings
    warn_unknown = target is None
    target = config if target is None else target
    if not os.path.isfile(yaml_file):
        raise FileNotFoundError(f"Project file not found: {yaml_file}")
    with open(yaml_file, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{yaml_file} must contain a mapping, got {type(data).__name__}")

    for key, value in data.items():
        if isinstance(key, str) and key.isupper():
            if warn_unknown and key not in target:
                logger.warning("Unknown setting %s in %s", key, yaml_file)
            target[key] = value
    if "names" in data:
        target["LABELS"] = parse_names(data["names"])
    logger.info("Loaded project settings from %s (%d labels)", yaml_file, len(target.get("LABELS", [])))
    return target
