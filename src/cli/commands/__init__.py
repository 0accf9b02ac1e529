from .parse import parse
from .reconcilers import reconcilers
from .run import run
from .whoami import whoami

__all__ = ["parse", "reconcilers", "run", "whoami"]
