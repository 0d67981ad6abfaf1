import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "trusted_org": None,  # required by `prtrigger handle`
    "bot_name": None,  # looked up from the token when unset
    "needs_ok_to_test_label": "needs-ok-to-test",
    "presubmits": {},  # "owner/repo" -> list of job mappings
    "store": "noop",
    "store_path": ".prtrigger.db",
    "gist_id": None,
}


def load_config(config_path: str = ".prtrigger.yml", cli_overrides: Optional[dict] = None) -> dict:
    """Return the trigger settings for one run.

    Built-in defaults are overlaid by the YAML file at ``config_path`` (when it
    exists), then by non-None ``cli_overrides``. ``github_token`` always comes
    from GITHUB_TOKEN; ``bot_name`` from PRTRIGGER_BOT_NAME when that is set.
    """
    config = {**DEFAULT_CONFIG, "presubmits": dict(DEFAULT_CONFIG["presubmits"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping at the top level.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    if config.get("presubmits") is None:
        config["presubmits"] = {}

    # Resolve credentials and identity from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["bot_name"] = os.environ.get("PRTRIGGER_BOT_NAME") or config.get("bot_name")

    return config
