"""Country, currency and location models plus the JSON catalog codec."""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer, field_validator

MAX_SAVED_COUNTRIES = 5


class Location(BaseModel):
    """A latitude/longitude pair."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class Currency(BaseModel):
    """Currency used by a country."""

    model_config = ConfigDict(frozen=True)

    code: str = ""
    name: str = ""
    symbol: str = ""

    @field_validator("code", "name", "symbol", mode="before")
    @classmethod
    def blank_if_missing(cls, value):
        # Some catalog entries carry null names or symbols.
        return "" if value is None else value


class Country(BaseModel):
    """Country record as published by the catalog.

    The wire format uses ``alpha3Code`` for the code and a two-element
    ``latlng`` array for the coordinates. Both the wire names and the
    field names are accepted on input.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    code: str = Field(alias="alpha3Code")
    capital: str | None = None
    coordinates: Location | None = Field(default=None, alias="latlng")
    currencies: tuple[Currency, ...] = ()

    @field_validator("coordinates", mode="before")
    @classmethod
    def parse_latlng(cls, value):
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                return None
            return Location(latitude=value[0], longitude=value[1])
        return value

    @field_serializer("coordinates")
    def dump_latlng(self, value: Location | None) -> list[float]:
        if value is None:
            return []
        return [value.latitude, value.longitude]

    @property
    def location(self) -> Location | None:
        return self.coordinates

    @property
    def currency_label(self) -> str:
        """First currency rendered as ``"<code> <name> <symbol>"``, or an empty string."""
        if not self.currencies:
            return ""
        currency = self.currencies[0]
        return f"{currency.code} {currency.name} {currency.symbol}"


_countries_adapter = TypeAdapter(list[Country])


def decode_countries(raw: str | bytes) -> list[Country]:
    """Decode a JSON array of wire-format country records.

    Raises:
        pydantic.ValidationError: If the payload is not a list of countries.
    """
    return _countries_adapter.validate_json(raw)


def encode_countries(countries: list[Country]) -> str:
    """Encode countries as a JSON array using the wire field names."""
    return _countries_adapter.dump_json(list(countries), by_alias=True).decode("utf-8")
