from __future__ import annotations

from app.services.packages import completed_tournee_code, extract_packages


def _article(**overrides):
    article = {
        "metier": "COLIS",
        "idArticle": "ART-1",
        "refExterneArticle": "CP123456789FR",
        "nomDestinataire": "Marie Durand",
        "LibelleVoieOrigineDestinataire": "12 rue des Lilas",
        "codePostalOrigineDestinataire": "25000",
        "LibelleLocaliteOrigineDestinataire": "Besançon",
        "codeStatutArticle": "EN_LIVRAISON",
        "PreferenceLivraison": "Laisser chez le gardien",
        "telephoneMobileDestinataire": "0600000000",
        "priorite": 2,
    }
    article.update(overrides)
    return article


def test_parcels_are_mapped() -> None:
    packages = extract_packages({"LstLieuArticle": [_article()]})

    assert len(packages) == 1
    package = packages[0]
    assert package.id == "ART-1"
    assert package.tracking_number == "CP123456789FR"
    assert package.recipient_name == "Marie Durand"
    assert package.address == "12 rue des Lilas, 25000 Besançon"
    assert package.status == "EN_LIVRAISON"
    assert package.priority == "2"


def test_non_parcel_and_incomplete_articles_are_skipped() -> None:
    articles = [
        _article(idArticle="keep"),
        _article(metier="RELAIS"),
        _article(nomDestinataire=None),
        _article(priorite="haute"),
        _article(priorite=-1),
        "garbage",
    ]
    packages = extract_packages({"LstLieuArticle": articles})

    assert [package.id for package in packages] == ["keep"]


def test_missing_article_list_yields_nothing() -> None:
    assert extract_packages({}) == []
    assert extract_packages({"LstLieuArticle": "none"}) == []
    assert extract_packages(["not", "a", "document"]) == []


def test_completed_tournee_code() -> None:
    assert completed_tournee_code({"InfosTournee": {"codeTourneeDistribution": "TRN-42"}}) == "TRN-42"
    assert completed_tournee_code({"InfosTournee": {}}) == "unknown"
    assert completed_tournee_code({"LstLieuArticle": []}) is None
