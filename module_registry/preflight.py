"""
Pre-flight validation utilities.

Run checks before serving or building to fail fast:
- Command checks (git on PATH)
- Repository checks (path exists, or a URL is configured)
- Asset cache checks (versions manifest present)
- TLS material checks (both files present)
"""

import logging
import shutil
from typing import Any, Dict, List

from module_registry.config import Config
from module_registry.registry.manifest import MANIFEST_NAME

logger = logging.getLogger(__name__)


def check_commands(commands: List[str]) -> Dict[str, Any]:
    """
    Verify required executables are on PATH.
    
    Returns:
        {"status": "pass"} or {"status": "fail", "missing": [...]}
    """
    missing = [c for c in commands if shutil.which(c) is None]
    if missing:
        logger.warning(f"Missing commands: {missing}")
        return {"status": "fail", "missing": missing}
    return {"status": "pass"}


def check_config(config: Config, *, building: bool = False) -> Dict[str, Any]:
    """
    Check that everything the configured mode needs is in place.
    
    Args:
        config: Loaded configuration
        building: True when running the offline build (needs a repository
            even in precomputed mode, never needs an existing asset cache)
    
    Returns:
        {"status": "pass"} or {"status": "fail", "problems": [...]}
    """
    problems: List[str] = []
    needs_repo = building or not config.is_precomputed

    if needs_repo:
        if check_commands(["git"])["status"] == "fail":
            problems.append("git executable not found on PATH")
        if not config.repo_url and not config.repo_path.is_dir():
            problems.append(f"Repository path does not exist: {config.repo_path}")
    elif not (config.assets_dir / MANIFEST_NAME).is_file():
        problems.append(f"No {MANIFEST_NAME} in {config.assets_dir}; run `module-registry build` first")

    if not building:
        if bool(config.tls_certfile) != bool(config.tls_keyfile):
            problems.append("Both REGISTRY_TLS_CERT and REGISTRY_TLS_KEY must be set to enable TLS")
        for path in (config.tls_certfile, config.tls_keyfile):
            if path and not path.is_file():
                problems.append(f"TLS file not found: {path}")
        if config.static_dir and not config.static_dir.is_dir():
            problems.append(f"Static directory not found: {config.static_dir}")

    if problems:
        logger.warning(f"Preflight failed: {problems}")
        return {"status": "fail", "problems": problems}
    return {"status": "pass"}
