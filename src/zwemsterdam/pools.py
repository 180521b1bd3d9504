"""Static pool metadata: website links and the data-source catalog."""

from src.zwemsterdam.models import DataSource

# Pool -> public schedule page, linked from every exported session
POOL_WEBSITES: dict[str, str] = {
    "Zuiderbad": "https://www.amsterdam.nl/zuiderbad/zwembadrooster-zuiderbad/",
    "Noorderparkbad": "https://www.amsterdam.nl/noorderparkbad/zwembadrooster-noorderparkbad/",
    "De Mirandabad": "https://www.amsterdam.nl/de-mirandabad/zwembadrooster-de-mirandabad/",
    "Flevoparkbad": "https://www.amsterdam.nl/flevoparkbad/zwembadrooster-flevoparkbad/",
    "Brediusbad": "https://www.amsterdam.nl/brediusbad/zwembadrooster-brediusbad/",
    "Het Marnix": "https://hetmarnix.nl/zwemmen/",
    "Sportfondsenbad Oost": "https://amsterdamoost.sportfondsen.nl/tijden-tarieven/",
    "Sportplaza Mercator": "https://mercator.sportfondsen.nl/tijden-tarieven-van-mercator/",
    "Bijlmer Sportcentrum": "https://www.optisport.nl/zwembad-bijlmer-amsterdam-zuidoost",
    "Sloterparkbad": "https://www.optisport.nl/zwembad-het-sloterparkbad-amsterdam",
    "Duranbad (Diemen)": "https://www.diemen.nl/zwembad/Openingstijden",
}

DATA_SOURCES: list[DataSource] = [
    DataSource(
        name="Gemeente Amsterdam",
        description="Gemeentelijke zwembaden van Amsterdam",
        url="https://www.amsterdam.nl/sport/zwembaden/",
        pools=["Zuiderbad", "Noorderparkbad", "De Mirandabad", "Flevoparkbad", "Brediusbad"],
    ),
    DataSource(
        name="Het Marnix",
        description="Zwembad in Amsterdam West",
        url="https://hetmarnix.nl/",
        pools=["Het Marnix"],
    ),
    DataSource(
        name="Sportfondsen Amsterdam",
        description="Sportfondsen zwembaden",
        url="https://www.sportfondsen.nl/",
        pools=["Sportfondsenbad Oost", "Sportplaza Mercator"],
    ),
    DataSource(
        name="Optisport",
        description="Optisport zwembaden",
        url="https://www.optisport.nl/",
        pools=["Bijlmer Sportcentrum", "Sloterparkbad"],
    ),
    DataSource(
        name="Gemeente Diemen",
        description="Duranbad in Diemen",
        url="https://www.diemen.nl/zwembad",
        pools=["Duranbad (Diemen)"],
    ),
]


def website_for(pool: str) -> str | None:
    """Return the schedule page for a pool, or None when it is not listed."""
    return POOL_WEBSITES.get(pool)
