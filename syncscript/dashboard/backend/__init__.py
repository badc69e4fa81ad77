"""Dashboard Backend Package

FastAPI REST API exposing task toggles, filters and views.
"""

from pathlib import Path


# Re-export project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
CONFIG_PATH = PROJECT_ROOT / "args" / "dashboard.yaml"
