"""
Command-line interface for camera preview planning.

Usage:
    preview-geometry config.yaml [--output-dir OUTPUT_DIR]
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import PreviewConfig
from .planner import PreviewPlanner


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description='Select a capture size and compute the preview surface transform',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
    # Plan with default output location
    preview-geometry preview.yaml

    # Write the report to a custom directory
    preview-geometry preview.yaml --output-dir ./results

    # Verbose output
    preview-geometry preview.yaml -v
'''
    )

    parser.add_argument(
        'config',
        type=str,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=None,
        help='Output directory for the plan report (default: next to config file)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    parser.add_argument(
        '--no-candidates',
        action='store_true',
        help='Exclude the candidate size list from the JSON report'
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = PreviewConfig.from_yaml(args.config)

        if args.output_dir:
            output_dir = Path(args.output_dir)
        else:
            output_dir = Path(args.config).parent / 'preview_results'

        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Output directory: {output_dir}")

        planner = PreviewPlanner(config)
        planner.load_data()
        plan = planner.plan()

        planner.save_report(
            plan,
            str(output_dir / 'preview_plan.json'),
            include_candidates=not args.no_candidates,
        )

        c = plan.components
        print("\n" + "=" * 60)
        print("PREVIEW PLAN")
        print("=" * 60)
        print(f"Viewport:               {plan.viewport}")
        print(f"Candidates:             {plan.candidate_count}")
        print(f"Effective rotation:     {plan.effective_rotation}")
        print(f"Capture size:           {plan.capture_size}")
        print(f"Scale policy:           {plan.scale_policy.name}")
        print(f"\nPreview transform:")
        print(f"  Scale X:              {c.scale_x:.6f}")
        print(f"  Scale Y:              {c.scale_y:.6f}")
        print(f"  Rotation:             {c.rotation_degrees:.1f}")
        print(f"  Translate:            ({c.translate_x:.2f}, {c.translate_y:.2f})")
        print(f"\nCross-check:            {'OK' if plan.formulations_agree else 'MISMATCH'}")
        print("=" * 60)

        if not plan.formulations_agree:
            logger.error("Direct and inverted transforms disagree")
            return 1
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
