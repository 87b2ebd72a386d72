"""Export the environment variable catalogue of all settings classes as JSON.

Usage:
    python scripts/export_settings.py [OUTPUT_PATH]

Writes to stdout when no output path is given.
"""

import json
import sys
from pathlib import Path
from typing import Any, Type

from pydantic import SecretStr
from pydantic_core import PydanticUndefined
from pydantic_settings import BaseSettings

root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path / "src" / "api"))

from infrastructure.settings import (  # noqa: E402
    AuditSettings,
    DatabaseSettings,
    DeferredWorkerSettings,
    Settings,
    TenancySettings,
)


def _display_default(default: Any, is_required: bool) -> Any:
    if isinstance(default, SecretStr):
        return "********" if not is_required else None
    if is_required or default is None:
        return None
    # Keep JSON-native values as they are, stringify the rest (enums, floats)
    if isinstance(default, (list, dict, bool, int)):
        return default
    return str(default)


def get_model_metadata(settings_class: Type[BaseSettings]) -> dict[str, Any]:
    prefix = settings_class.model_config.get("env_prefix", "")
    properties = []

    for name, field in settings_class.model_fields.items():
        type_name = getattr(field.annotation, "__name__", str(field.annotation))
        default = field.get_default()

        # A field is required if it has no default, or is a Secret whose
        # default is empty
        is_required = default is PydanticUndefined or (
            isinstance(default, SecretStr) and default.get_secret_value() == ""
        )

        if default is None and field.default_factory is not None:
            default = field.default_factory()

        properties.append(
            {
                "env_var": f"{prefix}{name.upper()}",
                "type": "Secret" if "Secret" in type_name else type_name,
                "default": _display_default(default, is_required),
                "required": is_required,
                "description": field.description or "",
            }
        )

    return {
        "class_name": settings_class.__name__,
        "prefix": prefix,
        "doc": settings_class.__doc__ or "",
        "properties": properties,
    }


def export_settings(output_path: Path | None = None) -> None:
    classes = [
        Settings,
        DatabaseSettings,
        TenancySettings,
        DeferredWorkerSettings,
        AuditSettings,
    ]

    data = {cls.__name__: get_model_metadata(cls) for cls in classes}
    rendered = json.dumps(data, indent=2)

    if output_path is None:
        print(rendered)
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(rendered + "\n")
    print(f"Exported settings to {output_path}", file=sys.stderr)


if __name__ == "__main__":
    export_settings(Path(sys.argv[1]) if len(sys.argv) > 1 else None)
