"""gwsmail — Outbound mail core for a Google Workspace command-line client

Philosophy:
    Everything that touches the wire format of a message lives here and is
    testable without a network. Fetching message metadata and sending the
    final bytes are collaborators behind narrow interfaces.

Components:
    mail/: Address parsing, header encoding, MIME assembly, reply threading
    providers/: Message store interface and the Gmail implementation
    tracking/: Open-tracking pixel generation (optional)
    config_models.py: Pydantic models for args/gwsmail.yaml
    logging_config.py: structlog setup
    cli.py: `gwsmail` command entry point
"""

from pathlib import Path

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = ARGS_DIR / "gwsmail.yaml"

__version__ = "0.3.0"

__all__ = [
    "ARGS_DIR",
    "CONFIG_PATH",
    "PROJECT_ROOT",
    "__version__",
]
