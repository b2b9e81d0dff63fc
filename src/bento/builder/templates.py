"""Discovery of packer templates under the templates directory."""

import fnmatch
from pathlib import Path

OVERRIDE_SUFFIX = ".variables.json"


def list_templates(templates_dir: Path, pattern: str | None = None) -> list[str]:
    """Template names relative to `templates_dir`, without the `.json` suffix."""
    root = Path(templates_dir)
    if not root.is_dir():
        return []
    names = []
    for path in sorted(root.glob("**/*.json")):
        if path.name.endswith(OVERRIDE_SUFFIX):
            continue
        name = path.relative_to(root).with_suffix("").as_posix()
        if pattern is None or fnmatch.fnmatch(name, pattern):
            names.append(name)
    return names
