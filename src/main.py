"""
Vehicle detection and evaluation over static traffic-camera images.

Detects moving vehicles with background subtraction and contour analysis,
writes per-image results, and scores them against Pascal VOC annotations.

Usage:
    python src/main.py run --config config/config.yaml
    python src/main.py detect --input data/images --output output
    python src/main.py evaluate --annotations data/annotations --output output

Commands:
    detect: Run detection over the image directory and write outputs
    evaluate: Score existing result files against the annotations
    run: Detection and evaluation in one pass

Arguments:
    --config: Path to configuration file
    --input: Image directory (overrides paths.images_dir)
    --annotations: Annotation directory (overrides paths.annotations_dir)
    --output: Output directory (overrides paths.output_dir)
    --log-level: Log level (overrides log_level)
"""

import os
import sys
import argparse
import logging
import yaml
from typing import Dict, Any, List, Tuple, Optional

# Import local modules
from models.config import Config
from detection.background import BACKENDS
from detection.mask import KERNEL_SHAPES
from ops.logging import setup_logging
from pipeline.engine import SCOPES, create_engine_from_config
from pipeline.stages.evaluate import create_evaluate_stage, evaluate_results_dir

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['detection', 'paths', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    detection = config.get('detection') or {}
    label = detection.get('label', 'vehicle')
    if not isinstance(label, str) or label.split() != [label]:
        return False, "detection.label must be a single word (result records are whitespace-separated)"

    # Background model
    background = detection.get('background') or {}
    if background.get('backend', 'gmm') not in BACKENDS:
        return False, f"detection.background.backend must be one of: {', '.join(BACKENDS)}"
    if background.get('scope', 'sequence') not in SCOPES:
        return False, f"detection.background.scope must be one of: {', '.join(SCOPES)}"
    for key in ('history', 'n_mixtures'):
        if key in background and not _is_positive_int(background[key]):
            return False, f"detection.background.{key} must be a positive integer"
    for key in ('var_threshold', 'var_init', 'var_min', 'var_max'):
        if key in background and (not _is_number(background[key]) or background[key] <= 0):
            return False, f"detection.background.{key} must be a positive number"
    for key in ('shadow_ratio', 'background_ratio'):
        if key in background:
            value = background[key]
            if not _is_number(value) or not (0 < value <= 1):
                return False, f"detection.background.{key} must be between 0 and 1"

    # Mask threshold
    mask = detection.get('mask') or {}
    for key in ('threshold', 'max_value'):
        if key in mask:
            value = mask[key]
            if not isinstance(value, int) or isinstance(value, bool) or not (0 <= value <= 255):
                return False, f"detection.mask.{key} must be an integer between 0 and 255"

    # Morphology
    morphology = detection.get('morphology') or {}
    if morphology.get('kernel_shape', 'rect') not in KERNEL_SHAPES:
        return False, f"detection.morphology.kernel_shape must be one of: {', '.join(KERNEL_SHAPES)}"
    if 'kernel_size' in morphology and not _is_positive_int(morphology['kernel_size']):
        return False, "detection.morphology.kernel_size must be a positive integer"

    # Geometric filter
    filt = detection.get('filter') or {}
    for key in ('min_area', 'max_area', 'min_aspect_ratio', 'max_aspect_ratio'):
        if key in filt and (not _is_number(filt[key]) or filt[key] <= 0):
            return False, f"detection.filter.{key} must be a positive number"
    if 'min_area' in filt and 'max_area' in filt and filt['max_area'] < filt['min_area']:
        return False, "detection.filter.max_area must not be less than min_area"
    if ('min_aspect_ratio' in filt and 'max_aspect_ratio' in filt
            and filt['max_aspect_ratio'] < filt['min_aspect_ratio']):
        return False, "detection.filter.max_aspect_ratio must not be less than min_aspect_ratio"
    for key in ('min_extent', 'min_solidity'):
        if key in filt:
            value = filt[key]
            if not _is_number(value) or not (0 <= value <= 1):
                return False, f"detection.filter.{key} must be between 0 and 1"

    # Evaluation settings
    evaluation = config.get('evaluation') or {}
    if 'iou_threshold' in evaluation:
        iou = evaluation['iou_threshold']
        if not _is_number(iou) or not (0 < iou <= 1):
            return False, "evaluation.iou_threshold must be between 0 and 1"
    if 'label_map' in evaluation and not isinstance(evaluation['label_map'] or {}, dict):
        return False, "evaluation.label_map must be a mapping of ground-truth label to detector label"

    # Paths
    paths = config.get('paths') or {}
    for key in ('images_dir', 'annotations_dir', 'output_dir', 'debug_dir'):
        if key in paths and not isinstance(paths[key], str):
            return False, f"paths.{key} must be a string"

    # Validate log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    common.add_argument('--input', type=str, default=None,
                        help='Directory of input images')
    common.add_argument('--annotations', type=str, default=None,
                        help='Directory of Pascal VOC annotation files')
    common.add_argument('--output', type=str, default=None,
                        help='Output directory for images, results and reports')
    common.add_argument('--log-level', type=str, default=None, choices=VALID_LOG_LEVELS,
                        help='Override the configured log level')

    parser = argparse.ArgumentParser(description='Vehicle Detection & Evaluation')
    subparsers = parser.add_subparsers(dest='command', required=True)
    subparsers.add_parser('detect', parents=[common],
                          help='Detect vehicles and write annotated images and results')
    subparsers.add_parser('evaluate', parents=[common],
                          help='Evaluate existing result files against annotations')
    subparsers.add_parser('run', parents=[common],
                          help='Detect and evaluate in one pass')
    return parser.parse_args(argv)


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Apply command-line path and log-level overrides to the raw config."""
    paths = config.setdefault('paths', {})
    if args.input:
        paths['images_dir'] = args.input
    if args.annotations:
        paths['annotations_dir'] = args.annotations
    if args.output:
        paths['output_dir'] = args.output
    if args.log_level:
        config['log_level'] = args.log_level
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function."""
    args = parse_args(argv)

    # Load configuration
    raw_config = apply_cli_overrides(load_config(args.config), args)

    # Validate configuration
    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    config = Config.from_dict(raw_config)

    # Setup logging
    logger = setup_logging(config.log_path, config.log_level)
    logger.info(f"Starting vehicle detection ({args.command})")
    logger.debug(f"Effective configuration: {config.to_dict()}")

    if args.command == 'evaluate':
        stage = create_evaluate_stage(config, logger=logger)
        try:
            evaluate_results_dir(config.paths.results_dir, stage, images_dir=config.paths.images_dir)
        except RuntimeError as e:
            logger.error(str(e))
            return 1
        return 0

    engine = create_engine_from_config(config, evaluate=(args.command == 'run'), logger=logger)
    try:
        stats = engine.run()
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    logger.info(
        f"Done: {stats.processed} images processed, {stats.skipped} skipped, "
        f"{stats.detections} detections"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
