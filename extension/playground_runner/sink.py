"""
Result sink for playground output.

The only writer of the output channel. It is invoked from the coordinator's
terminal transitions, once per run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .worker.base import ExecuteAllResult, is_no_result

if TYPE_CHECKING:
    from .host import OutputChannel

logger = logging.getLogger(__name__)


class ResultSink:
    """Renders worker results into an output channel."""

    def __init__(self, output_channel: "OutputChannel") -> None:
        self.output_channel = output_channel

    def render(self, result: Optional[ExecuteAllResult]) -> None:
        """Replace the channel's content with result.

        The channel is cleared once, not per record. A None result leaves the
        channel empty.
        """
        self.output_channel.clear()
        if not is_no_result(result):
            for record in result:
                self.output_channel.append_line(record.content)
            logger.debug("Rendered playground output", extra={"records": len(result)})
        self.output_channel.show(preserve_focus=True)

    def clear(self) -> None:
        """Empty the channel and reveal it."""
        self.output_channel.clear()
        self.output_channel.show(preserve_focus=True)

    def reveal(self) -> None:
        self.output_channel.show(preserve_focus=True)
