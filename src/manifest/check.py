import sys
from pathlib import Path

ALLOWED_ROOTS = {
    "adapters",
    "app_shell",
    "components",
    "manifest",
    "rules",
}

# Every component package must provide these
COMPONENT_FILES = ("__init__.py", "component.py", "models.py", "ports.py")

IGNORE = {"__pycache__", ".DS_Store", "__init__.py"}


def check_component(component_dir: Path) -> list[str]:
    errors = []
    for name in COMPONENT_FILES:
        if not (component_dir / name).is_file():
            errors.append(f"Component '{component_dir.name}' is missing {name}")
    if not (component_dir / "tests").is_dir():
        errors.append(f"Component '{component_dir.name}' has no tests/ package")
    return errors


def check_structure(root_path: Path = Path("src")) -> list[str]:
    errors = []

    if not root_path.exists():
        return ["src directory not found!"]

    # 1. Check Top-Level Directories
    for entry in root_path.iterdir():
        if entry.name in IGNORE:
            continue

        if entry.is_dir():
            if entry.name not in ALLOWED_ROOTS:
                errors.append(
                    f"Illegal dir in src/: '{entry.name}'. Allowed: {sorted(ALLOWED_ROOTS)}"
                )
                continue
            # 2. Check for __init__.py in allowed dirs (packages)
            if not (entry / "__init__.py").exists():
                errors.append(f"Missing __init__.py in package: '{entry.name}'")
        elif entry.is_file():
            errors.append(
                f"Illegal file in src/ root: '{entry.name}'. Should be in component packages."
            )

    # 3. Check component layout
    components = root_path / "components"
    if components.is_dir():
        for entry in sorted(components.iterdir()):
            if entry.is_dir() and entry.name not in IGNORE:
                errors.extend(check_component(entry))

    return errors


if __name__ == "__main__":
    violations = check_structure()
    if violations:
        print("Architectural Violations Found:")
        for v in violations:
            print(f"  - {v}")
        sys.exit(1)
    else:
        print("Architecture Integrity Check: PASS")
        sys.exit(0)
