import logging
from rich.logging import RichHandler


def setup_logging(level: int = logging.INFO) -> None:
    """Route root logging through RichHandler, which renders time and level itself.

    Reconfigures the root handlers on every call, so repeated calls do not duplicate output.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_time=True, show_path=False, rich_tracebacks=True)],
    )


__all__ = ["setup_logging"]
