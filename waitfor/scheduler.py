import time

from loguru import logger
from pydantic import Field

from waitfor.common.models import FrozenModel
from waitfor.common.pure import pure
from waitfor.expression import ExpressionLike
from waitfor.expression import as_expression
from waitfor.expression import is_expression_met
from waitfor.primitives import PositiveFloat
from waitfor.utils.logging import log_span


class WaitOutcome(FrozenModel):
    """How a completed wait went."""

    tick_count: int = Field(description="Number of times the expression was evaluated, including the final one")
    elapsed_seconds: float = Field(description="Wall time from the first tick start until the expression was met")


@pure
def compute_sleep_seconds(interval_seconds: float, evaluation_seconds: float) -> float:
    """Return how long to sleep after a tick so that ticks start `interval_seconds` apart.

    Never negative: a tick that took the whole interval or longer is followed immediately by the next.
    """
    return max(0.0, interval_seconds - evaluation_seconds)


def wait_until_met(expression: ExpressionLike, interval_seconds: float) -> WaitOutcome:
    """Evaluate the expression every `interval_seconds` until it is met.

    There is no deadline: OR an elapsed() condition into the expression to get one.
    Ticks run strictly one after another, and the only suspension point is the sleep
    between them, so interrupting the process (KeyboardInterrupt) is the way to cancel.
    """
    root = as_expression(expression)
    interval = PositiveFloat(interval_seconds)

    started_at = time.monotonic()
    tick_count = 0
    is_met = False
    while not is_met:
        tick_count += 1
        tick_started_at = time.monotonic()
        with log_span("Evaluating tick {}", tick_count):
            is_met = is_expression_met(root)
        if not is_met:
            sleep_seconds = compute_sleep_seconds(interval, time.monotonic() - tick_started_at)
            if sleep_seconds > 0:
                time.sleep(sleep_seconds)

    elapsed_seconds = time.monotonic() - started_at
    logger.debug("Waited {:.3f} seconds ({} ticks)", elapsed_seconds, tick_count)
    return WaitOutcome(tick_count=tick_count, elapsed_seconds=elapsed_seconds)
