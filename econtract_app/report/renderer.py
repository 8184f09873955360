from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, select_autoescape

from econtract_app.core.messages import STATUS_LABELS, TYPE_LABELS
from econtract_app.core.models import CompletionCertificate, Contract

logger = logging.getLogger(__name__)


def _jp_date(value) -> str:
    if value is None:
        return "-"
    return f"{value.year}年{value.month}月{value.day}日"


def _jp_datetime(value) -> str:
    if value is None:
        return "-"
    return f"{_jp_date(value)} {value:%H:%M:%S} UTC"


def _build_env(asset_root: Optional[Path] = None) -> Environment:
    """
    Jinja2 loader with two search paths:
    1) (optional) asset_root, for deployments that override templates
    2) the packaged ``templates`` directory
    """
    search_paths = [str(Path(__file__).parent / "templates")]
    if asset_root:
        search_paths.insert(0, str(asset_root))
    logger.debug("Jinja2 search paths: %s", search_paths)

    env = Environment(
        loader=ChoiceLoader([FileSystemLoader(p) for p in search_paths]),
        autoescape=select_autoescape(["html", "xml"]),
        enable_async=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["jp_date"] = _jp_date
    env.filters["jp_datetime"] = _jp_datetime
    return env


def render_contract_html(contract: Contract, asset_root: Optional[Path] = None) -> str:
    template = _build_env(asset_root).get_template("contract.html")
    return template.render(
        contract=contract,
        status_label=STATUS_LABELS.get(contract.status, contract.status),
        type_label=TYPE_LABELS.get(contract.type, contract.type),
        paragraphs=[p for p in contract.content.split("\n\n") if p.strip()],
    )


def render_certificate_html(
    certificate: CompletionCertificate, contract: Contract, asset_root: Optional[Path] = None
) -> str:
    template = _build_env(asset_root).get_template("certificate.html")
    return template.render(certificate=certificate, contract=contract)


__all__ = ["render_certificate_html", "render_contract_html"]
