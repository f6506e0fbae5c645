#!/usr/bin/env python3
"""
Validate road-generation.json
"""
import json
import sys
from pathlib import Path

# Expected structure
EXPECTED_KEYS = [
    'default_segment_length', 'highway_segment_length',
    'default_segment_width', 'highway_segment_width',
    'branch_angle_limit', 'straight_angle_limit',
    'default_branch_probability', 'highway_branch_probability',
    'highway_branch_population_threshold', 'normal_branch_population_threshold',
    'normal_branch_time_delay_from_highway', 'minimum_intersection_deviation',
    'segment_count_limit', 'road_snap_distance',
    'quadtree_bounds', 'quadtree_max_objects', 'quadtree_max_levels',
    'min_speed_proportion',
]


def validate_road_generation(config_path=None):
    """Validate road-generation.json"""
    print("Validating road-generation.json...")
    if config_path is None:
        config_path = Path(__file__).parent.parent / 'config' / 'road-generation.json'

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        print(f"✗ Invalid JSON: {e}")
        return False
    except FileNotFoundError:
        print(f"✗ File not found: {config_path}")
        return False

    if not isinstance(data, dict):
        print("✗ Top level must be an object")
        return False

    missing_keys = [k for k in EXPECTED_KEYS if k not in data]
    if missing_keys:
        print(f"✗ Missing keys: {missing_keys}")
        return False
    print(f"✓ All {len(EXPECTED_KEYS)} parameters present")

    unknown_keys = [k for k in data if k not in EXPECTED_KEYS]
    if unknown_keys:
        print(f"✗ Unknown keys: {unknown_keys}")
        return False

    bounds = data['quadtree_bounds']
    if not isinstance(bounds, list) or len(bounds) != 4:
        print("✗ quadtree_bounds must be [x, y, width, height]")
        return False
    print("✓ Quadtree bounds well formed")

    # Test loading with actual module
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from internal.roadgen import config

    try:
        generation_config = config.load_generation_config(config_path)
    except ValueError as e:
        print(f"✗ Invalid parameter: {e}")
        return False
    print(f"✓ Module loads config (segment limit {generation_config.segment_count_limit})")

    return True


if __name__ == '__main__':
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    if validate_road_generation(path):
        print("\n✓ All validations passed!")
        sys.exit(0)
    else:
        print("\n✗ Some validations failed")
        sys.exit(1)
