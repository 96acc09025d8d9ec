"""Turn a decoded tournée document into parcel stops."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from app.schemas import PackageData

logger = logging.getLogger(__name__)

_PARCEL_METIER = "COLIS"


def _text(article: Mapping[str, Any], field: str) -> Optional[str]:
    value = article.get(field)
    return value if isinstance(value, str) else None


def _package_from_article(article: Mapping[str, Any]) -> Optional[PackageData]:
    """Map one ``LstLieuArticle`` entry; incomplete entries yield ``None``."""
    if article.get("metier") != _PARCEL_METIER:
        return None

    priority = article.get("priorite")
    if isinstance(priority, bool) or not isinstance(priority, int) or priority < 0:
        return None

    fields: Dict[str, Optional[str]] = {
        "id": _text(article, "idArticle"),
        "tracking_number": _text(article, "refExterneArticle"),
        "recipient_name": _text(article, "nomDestinataire"),
        "street": _text(article, "LibelleVoieOrigineDestinataire"),
        "postal_code": _text(article, "codePostalOrigineDestinataire"),
        "locality": _text(article, "LibelleLocaliteOrigineDestinataire"),
        "status": _text(article, "codeStatutArticle"),
        "instructions": _text(article, "PreferenceLivraison"),
        "phone": _text(article, "telephoneMobileDestinataire"),
    }
    if any(value is None for value in fields.values()):
        return None

    return PackageData(
        id=fields["id"],
        tracking_number=fields["tracking_number"],
        recipient_name=fields["recipient_name"],
        address=f"{fields['street']}, {fields['postal_code']} {fields['locality']}",
        status=fields["status"],
        instructions=fields["instructions"],
        phone=fields["phone"],
        priority=str(priority),
    )


def extract_packages(tournee: Any) -> List[PackageData]:
    """Return the parcel stops of a tournée, skipping other article kinds."""
    if not isinstance(tournee, Mapping):
        return []
    articles = tournee.get("LstLieuArticle")
    if not isinstance(articles, list):
        return []

    packages = [
        package
        for article in articles
        if isinstance(article, Mapping)
        and (package := _package_from_article(article)) is not None
    ]
    skipped = len(articles) - len(packages)
    if skipped:
        logger.debug("Skipped %d non-parcel or incomplete article(s)", skipped)
    return packages


def completed_tournee_code(tournee: Any) -> Optional[str]:
    """Return the tournée code when the document describes a finished round."""
    if not isinstance(tournee, Mapping):
        return None
    infos = tournee.get("InfosTournee")
    if not isinstance(infos, Mapping):
        return None
    code = infos.get("codeTourneeDistribution")
    return code if isinstance(code, str) else "unknown"


__all__ = ["completed_tournee_code", "extract_packages"]
