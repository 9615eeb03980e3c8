import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, select_autoescape

from autocomplete_common.config import AUTOCOMPLETE_DEFAULT_LIMIT, AUTOCOMPLETE_MAX_LIMIT
from autocomplete_common.exceptions import (
    AutocompleteError,
    ClientInputError,
    ConfigurationError,
    NotFoundError,
)
from autocomplete_common.logging_utils import bind_provider
from autocomplete_common.monitoring import observe_request, provider_timer

from ..bootstrap import AutocompleteContext
from ..providers.base import ChipProvider
from ..resolver import ResolveOptions
from ..security.signer import CHIP_ROUTE_NAME, SEARCH_ROUTE_NAME
from ..translation import use_locale

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(
    env=Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html", "html.j2")),
    )
)

router = APIRouter(prefix="/_autocomplete", tags=["Autocomplete"])


def get_autocomplete_context(request: Request) -> AutocompleteContext:
    context = getattr(request.app.state, "autocomplete", None)
    if context is None:
        raise ConfigurationError("The autocomplete context has not been initialised on application startup.")
    return context


def get_caller_id(request: Request) -> str:
    """
    Stable identifier of the authenticated caller, or "" for anonymous
    requests and apps without an authentication middleware.
    """
    if "user" not in request.scope:
        return ""
    user = request.scope["user"]
    if not getattr(user, "is_authenticated", False):
        return ""
    return getattr(user, "display_name", "") or ""


@router.get(
    "/{provider}",
    name=SEARCH_ROUTE_NAME,
    response_class=HTMLResponse,
    summary="Search Autocomplete Options",
    description=(
        "Returns the rendered options fragment for a signed autocomplete search. "
        "The provider is a registered name, an inline choices token or a class token."
    ),
)
async def search_autocomplete(
    request: Request,
    provider: str,
    query: str = Query("", description="Search text typed by the user."),
    limit: int = Query(AUTOCOMPLETE_DEFAULT_LIMIT, ge=0, le=AUTOCOMPLETE_MAX_LIMIT),
    selected: List[str] = Query([], description="Ids already selected, excluded from the results."),
    selected_brackets: List[str] = Query([], alias="selected[]", include_in_schema=False),
    theme: Optional[str] = Query(None),
    translation_domain: Optional[str] = Query(None),
    choice_label: Optional[str] = Query(None),
    choice_value: Optional[str] = Query(None),
    locale: Optional[str] = Query(None),
    ts: Optional[str] = Query(None, description="Signature timestamp."),
    sig: Optional[str] = Query(None, description="Request signature."),
    context: AutocompleteContext = Depends(get_autocomplete_context),
    caller_id: str = Depends(get_caller_id),
):
    try:
        with bind_provider(provider), use_locale(locale):
            context.signer.verify(SEARCH_ROUTE_NAME, provider, request.query_params, caller_id)

            source = context.resolver.resolve(
                provider,
                ResolveOptions(
                    choice_label=choice_label,
                    choice_value=choice_value,
                    translation_domain=translation_domain,
                ),
            )
            with provider_timer(source.kind, "search"):
                results = await source.search(query, limit, [*selected, *selected_brackets])
    except AutocompleteError as exc:
        observe_request("search", type(exc).__name__)
        raise

    observe_request("search", "ok")
    return templates.TemplateResponse(
        request,
        context.themes.options_template(theme),
        {"results": results, "provider": provider, "query": query},
    )


@router.get(
    "/{provider}/chip",
    name=CHIP_ROUTE_NAME,
    response_class=HTMLResponse,
    summary="Render Autocomplete Chip",
    description="Returns the rendered chip fragment for one selected item of a signed autocomplete field.",
)
async def render_autocomplete_chip(
    request: Request,
    provider: str,
    id: Optional[str] = Query(None, description="Id of the selected item."),
    name: str = Query("autocomplete", description="Form field name the chip submits."),
    theme: Optional[str] = Query(None),
    translation_domain: Optional[str] = Query(None),
    chip_size: str = Query("md"),
    choice_label: Optional[str] = Query(None),
    choice_value: Optional[str] = Query(None),
    locale: Optional[str] = Query(None),
    ts: Optional[str] = Query(None, description="Signature timestamp."),
    sig: Optional[str] = Query(None, description="Request signature."),
    context: AutocompleteContext = Depends(get_autocomplete_context),
    caller_id: str = Depends(get_caller_id),
):
    try:
        with bind_provider(provider), use_locale(locale):
            context.signer.verify(CHIP_ROUTE_NAME, provider, request.query_params, caller_id)

            if not id:
                raise ClientInputError('Missing required query parameter "id".')

            source = context.resolver.resolve(
                provider,
                ResolveOptions(
                    choice_label=choice_label,
                    choice_value=choice_value,
                    translation_domain=translation_domain,
                ),
            )
            if not isinstance(source, ChipProvider):
                raise ConfigurationError(f'Provider "{provider}" ({source.kind}) does not support chips.')

            with provider_timer(source.kind, "get"):
                item = await source.get(id)
        if item is None:
            raise NotFoundError(f'Item "{id}" not found in provider "{provider}".')
    except AutocompleteError as exc:
        observe_request("chip", type(exc).__name__)
        raise

    observe_request("chip", "ok")
    return templates.TemplateResponse(
        request,
        context.themes.chip_template(theme),
        {"item": item, "provider": provider, "name": name, "chip_size": chip_size},
    )
