# HTML scrubbing for exported activities
# Strips markup from activity subjects and descriptions before a spreadsheet export

import re
from typing import Optional

from .logging import StructuredLogger, get_logger
from .pipeline import ExecutionContext, PluginStage

EXPORT_TO_EXCEL = "ExportToExcel"
RETRIEVE_MESSAGES = ("RetrieveMultiple", "Retrieve")
RESULTS_PARAMETER = "BusinessEntityCollection"
SCRUBBED_ATTRIBUTES = ("subject", "description")

_HTML_TAG = re.compile(r"<\s*p\s|<\s*body\s|<\s*html\s|<\s*span\s|<\s*div\s|<\s*br\s")
_ANY_TAG = re.compile(r"<.*?>", re.MULTILINE | re.DOTALL)

# Applied in order; &amp; last so "&amp;lt;" decodes to "&lt;" and not "<"
_ENTITIES = (("&lt;", "<"), ("&gt;", ">"), ("&nbsp;", " "), ("&amp;", "&"))


def has_html(text: Optional[str]) -> bool:
    """
    Whether the text contains a p, body, html, span, div or br opening tag.

    The tag name must be followed by whitespace, as in ``<p class="x">`` or
    ``<br />``, so a bare ``<p>`` is not recognized.
    """
    if text is None:
        return False
    return _HTML_TAG.search(text) is not None


def remove_html(text: Optional[str]) -> Optional[str]:
    """
    Remove every tag from the text and decode the common character entities.

    Anything between angle brackets goes, including tags spread over
    several lines.
    """
    if text is None:
        return None
    text = _ANY_TAG.sub("", text)
    for entity, character in _ENTITIES:
        text = text.replace(entity, character)
    return text


class ScrubHtmlPlugin:
    """Post-operation plugin cleaning HTML out of rows headed for an Excel export."""

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger or get_logger("scrub")

    def applies_to(self, context: ExecutionContext) -> bool:
        return (
            context.parent_context is not None
            and context.parent_context.message_name == EXPORT_TO_EXCEL
            and context.message_name in RETRIEVE_MESSAGES
            and context.stage == PluginStage.POST_OPERATION
        )

    def execute(self, context: ExecutionContext) -> int:
        """
        Scrub the subject and description of every returned row.

        Rows that cannot be scrubbed are logged and left as they are.

        Returns:
            Number of attributes rewritten
        """
        if not self.applies_to(context):
            return 0

        if context.output_parameters is None:
            self.logger.warning("Output parameters missing, nothing to scrub")
            return 0

        rows = context.output_parameters.get(RESULTS_PARAMETER)
        if rows is None:
            self.logger.warning(
                "No results to scrub", metadata={"parameter": RESULTS_PARAMETER}
            )
            return 0

        try:
            rows = list(rows)
        except TypeError as e:
            self.logger.warning(
                "Unable to get OutputParameters",
                metadata={"parameter": RESULTS_PARAMETER, "error": str(e)},
            )
            return 0

        scrubbed = 0
        for index, row in enumerate(rows):
            try:
                for attribute in SCRUBBED_ATTRIBUTES:
                    value = row.get(attribute)
                    if isinstance(value, str) and has_html(value):
                        row[attribute] = remove_html(value)
                        scrubbed += 1
            except (AttributeError, TypeError) as e:
                self.logger.warning(
                    "Unable to strip HTML tags",
                    metadata={"row": index, "error": str(e)},
                )

        self.logger.debug("Scrubbed export rows", metadata={"attributes": scrubbed})
        return scrubbed
