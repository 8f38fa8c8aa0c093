#!/usr/bin/env python3
"""Validate workset rule files.

Usage:
    python scripts/validate_rules.py rules.json
    python scripts/validate_rules.py path/to/project_rules.json
"""

import json
import re
import sys
from pathlib import Path

CATEGORY_PATTERN = re.compile(r"^OST_[A-Za-z0-9_]+$")

DOMAIN_FIELDS = ["name", "categories"]
MAPPING_RULE_FIELDS = ["bucket"]


def validate_token_rule(rule: dict, index: int) -> list[str]:
    """Validate a single token rule entry. Returns list of errors."""
    errors = []
    prefix = f"token_rules[{index}] ({rule.get('bucket', 'UNKNOWN')})"

    if not rule.get("bucket"):
        errors.append(f"{prefix}: missing required field 'bucket'")

    tokens = rule.get("tokens", [])
    if not isinstance(tokens, list):
        errors.append(f"{prefix}: tokens must be a list")
    elif not any(isinstance(t, str) and t.strip() for t in tokens):
        errors.append(f"{prefix}: no usable tokens")
    else:
        for token in tokens:
            if isinstance(token, str) and token != token.strip():
                errors.append(f"{prefix}: token '{token}' has surrounding whitespace")

    return errors


def validate_domain(domain: dict, index: int, token_buckets: set[str]) -> list[str]:
    """Validate a single domain entry. Returns list of errors."""
    errors = []
    prefix = f"domains[{index}] ({domain.get('name', 'UNKNOWN')})"

    for field in DOMAIN_FIELDS:
        if field not in domain or not domain[field]:
            errors.append(f"{prefix}: missing required field '{field}'")

    for key in ["categories", "carrier_categories"]:
        for category in domain.get(key, []):
            if not CATEGORY_PATTERN.match(category):
                errors.append(f"{prefix}: '{category}' in {key} is not an OST_ category")

    for bucket in domain.get("token_buckets", []):
        if bucket.lower() not in token_buckets:
            errors.append(f"{prefix}: token bucket '{bucket}' has no token rule")

    mapping = domain.get("classification")
    if domain.get("carrier_categories") and not mapping:
        errors.append(f"{prefix}: carriers declared without a classification mapping")
    if mapping:
        if not mapping.get("default_bucket"):
            errors.append(f"{prefix}: classification has no default_bucket")
        for i, rule in enumerate(mapping.get("rules", [])):
            for field in MAPPING_RULE_FIELDS:
                if not rule.get(field):
                    errors.append(f"{prefix}: classification.rules[{i}] missing '{field}'")
            if not rule.get("kind_keywords") and not rule.get("label_keywords"):
                errors.append(f"{prefix}: classification.rules[{i}] has no keywords")

    return errors


def validate_file(path: Path) -> tuple[int, list[str]]:
    """Validate a rules file. Returns (rule_count, errors)."""
    errors = []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        return 0, [f"Invalid JSON: {e}"]

    if not isinstance(data, dict):
        return 0, ["File must contain a JSON object"]

    if "version" not in data:
        errors.append("Missing 'version' field in file metadata")

    categories = data.get("category_to_bucket", {})
    if not isinstance(categories, dict):
        errors.append("category_to_bucket must be an object")
        categories = {}
    for category, bucket in categories.items():
        if not CATEGORY_PATTERN.match(category):
            errors.append(f"category_to_bucket: '{category}' is not an OST_ category")
        if not bucket:
            errors.append(f"category_to_bucket: '{category}' has no bucket")

    token_rules = data.get("token_rules", [])

    # Check for duplicate buckets
    seen_buckets: set[str] = set()
    for rule in token_rules:
        bucket = rule.get("bucket", "").lower()
        if bucket in seen_buckets:
            errors.append(f"Duplicate token bucket: '{rule.get('bucket')}'")
        seen_buckets.add(bucket)

    for i, rule in enumerate(token_rules):
        errors.extend(validate_token_rule(rule, i))

    claimed: dict[str, str] = {}
    for i, domain in enumerate(data.get("domains", [])):
        errors.extend(validate_domain(domain, i, seen_buckets))
        for category in list(domain.get("categories", [])) + list(domain.get("carrier_categories", [])):
            owner = claimed.setdefault(category, domain.get("name", ""))
            if owner != domain.get("name", ""):
                errors.append(f"Category '{category}' belongs to domains '{owner}' and '{domain.get('name')}'")

    return len(categories) + len(token_rules), errors


def main() -> int:
    if len(sys.argv) < 2:
        print(f"Usage: {sys.argv[0]} <rules_file.json> [...]")
        return 1

    total_errors = 0
    for filepath in sys.argv[1:]:
        path = Path(filepath)
        if not path.exists():
            print(f"ERROR: File not found: {path}")
            total_errors += 1
            continue

        count, errors = validate_file(path)

        if errors:
            print(f"\n{path}: {count} rules, {len(errors)} error(s)")
            for err in errors:
                print(f"  - {err}")
            total_errors += len(errors)
        else:
            print(f"{path}: {count} rules, all valid")

    if total_errors > 0:
        print(f"\nTotal errors: {total_errors}")
        return 1

    print("\nAll rule files valid.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
