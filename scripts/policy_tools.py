#!/usr/bin/env python3
"""Policy document tools for the policy lifecycle engine.

Usage:
    python scripts/policy_tools.py list               # List policy documents
    python scripts/policy_tools.py validate           # Validate all documents
    python scripts/policy_tools.py validate FILE...   # Validate specific documents
    python scripts/policy_tools.py show FILE          # Show normalized policy
"""

import sys
from pathlib import Path
from typing import Any, Dict, List

# Add packages to path
sys.path.insert(0, str(Path(__file__).parent.parent / "packages"))

from policy_config import ConfigurationError, PolicyKind, load_policy_document  # noqa: E402
from policy_core.validation import validate_config  # noqa: E402

POLICIES_DIR = Path("policies")

# Colors
GREEN = "\033[0;32m"
RED = "\033[0;31m"
BLUE = "\033[0;34m"
YELLOW = "\033[1;33m"
NC = "\033[0m"  # No Color


def _find_documents() -> List[Path]:
    if not POLICIES_DIR.exists():
        return []
    return sorted(list(POLICIES_DIR.glob("*.yaml")) + list(POLICIES_DIR.glob("*.yml")))


def list_documents() -> None:
    """List all policy documents in the policies directory."""
    print(f"{BLUE}Available policy documents:{NC}\n")

    if not POLICIES_DIR.exists():
        print(f"{RED}  No policies directory found at {POLICIES_DIR}{NC}")
        return

    documents = _find_documents()
    if not documents:
        print(f"{YELLOW}  No policy documents found in {POLICIES_DIR}/{NC}")
        return

    for document in documents:
        print(f"  {GREEN}•{NC} {document.stem}")
        print(f"    Path: {document}")
        try:
            kind, _ = load_policy_document(document)
            print(f"    Kind: {kind.value}")
        except (ConfigurationError, FileNotFoundError) as e:
            print(f"    {RED}Error loading: {e}{NC}")
        print()


def _validate_single_document(document: Path) -> bool:
    """Validate one policy document, printing the error tokens."""
    print(f"  Checking {document.name}...", end=" ")

    if not document.exists():
        print(f"{RED}✗ File not found{NC}")
        return False

    try:
        kind, config = load_policy_document(document)
    except ConfigurationError as e:
        print(f"{RED}✗ Invalid: {e}{NC}")
        return False

    result = validate_config(kind, config)
    if result.is_valid:
        print(f"{GREEN}✓ Valid {kind.value} policy{NC}")
        return True

    print(f"{RED}✗ Invalid {kind.value} policy: {', '.join(result.errors)}{NC}")
    return False


def validate_documents(paths: List[str]) -> bool:
    """Validate policy document(s); all documents when no paths are given."""
    documents = [Path(p) for p in paths] if paths else _find_documents()

    if not documents:
        print(f"{RED}No policy documents found{NC}")
        return False

    print(f"{BLUE}Validating policy documents...{NC}\n")

    # Validate every document even after a failure
    outcomes = [_validate_single_document(d) for d in documents]
    all_valid = all(outcomes)

    print()
    if all_valid:
        print(f"{GREEN}All policy documents are valid!{NC}")
    else:
        print(f"{RED}Some policy documents have errors.{NC}")

    return all_valid


def _print_sla(config: Dict[str, Any]) -> None:
    hours = config["working_hours"]
    print(f"{GREEN}Working hours:{NC}")
    if hours["mode"] == "24x7":
        print("  24x7\n")
    else:
        days = ", ".join(str(d) for d in hours["days"]) or "none"
        print(f"  {hours['start']}-{hours['end']} {hours['timezone']} (days: {days})\n")

    print(f"{GREEN}Priorities ({len(config['priorities'])}):{NC}")
    for i, priority in enumerate(config["priorities"], 1):
        print(
            f"  {i}. {priority['key']}: first response {priority['first_response_minutes']} min, "
            f"resolution {priority['resolution_minutes']} min"
        )


def _print_escalation(config: Dict[str, Any]) -> None:
    print(f"{GREEN}Rules ({len(config['rules'])}):{NC}")
    for i, rule in enumerate(config["rules"], 1):
        trigger = rule["trigger"]
        if "percentage" in rule:
            trigger = f"{trigger} at {rule['percentage']}%"
        elif "inactivity_minutes" in rule:
            trigger = f"{trigger} after {rule['inactivity_minutes']} min"
        print(f"  {i}. {trigger} -> {rule['behavior']} ({rule['severity']})")
        print(f"       Recipients: {', '.join(rule['recipients'])}")
        print(f"       Channels: {', '.join(rule['channels'])}")
        if rule.get("feature_flag"):
            print(f"       Feature flag: {rule['feature_flag']}")


def show_document(document_path: str) -> None:
    """Display the normalized form of a policy document."""
    path = Path(document_path)

    if not path.exists():
        print(f"{RED}Policy document not found: {document_path}{NC}")
        sys.exit(1)

    print(f"{BLUE}Policy document: {path.name}{NC}")
    print(f"{'=' * 50}\n")

    try:
        kind, raw = load_policy_document(path)
    except ConfigurationError as e:
        print(f"{RED}Error loading policy document: {e}{NC}")
        sys.exit(1)

    result = validate_config(kind, raw)
    if not result.is_valid or result.config is None:
        print(f"{RED}Invalid {kind.value} policy: {', '.join(result.errors)}{NC}")
        sys.exit(1)

    if kind == PolicyKind.SLA:
        _print_sla(result.config)
    else:
        _print_escalation(result.config)


def main() -> None:
    """Execute the policy tool command."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1].lower()

    if command == "list":
        list_documents()
    elif command == "validate":
        success = validate_documents(sys.argv[2:])
        sys.exit(0 if success else 1)
    elif command == "show":
        if len(sys.argv) < 3:
            print(f"{RED}Usage: policy_tools.py show <policy_file>{NC}")
            sys.exit(1)
        show_document(sys.argv[2])
    else:
        print(f"{RED}Unknown command: {command}{NC}")
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
