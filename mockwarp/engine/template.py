import chevron
from chevron.tokenizer import ChevronError

from mockwarp.engine.exceptions import TemplateExpansionError
from mockwarp.engine.models import RequestContext
from mockwarp.logging import logger


def expand(text: str, context: RequestContext) -> str:
    """
    Expands mustache-style placeholders in `text` against the request.

    The request is bound under the name `request`, so templates read values
    like `{{request.method}}`, `{{request.query.id}}` or
    `{{request.headers.user-agent}}`. `{{...}}` output is HTML-escaped and
    `{{{...}}}` is emitted raw. Placeholders that do not resolve render as an
    empty string.

    Raises:
        TemplateExpansionError: If `text` is not valid template syntax
            (unclosed tag, unbalanced section, ...).
    """
    try:
        return chevron.render(text, {"request": context.template_scope()})
    except ChevronError as e:
        logger.error(f"Template expansion failed for {context.method} {context.path}: {e}")
        raise TemplateExpansionError(str(e)) from e
