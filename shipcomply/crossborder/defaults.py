"""
Hardcoded cross-border reference data.

Used table by table when the store cannot be read or holds nothing for a
table. The restricted item and destination lists here differ from the
seeded catalog.
"""

INTERNATIONAL_REQUIRED_FIELDS = (
    "recipientName",
    "recipientAddress",
    "recipientCountry",
    "shipperName",
    "shipperAddress",
    "shipperCountry",
    "packageType",
    "weight",
    "dimensions",
    "packageContents",
    "declaredValue",
)

COUNTRY_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "US": ("hsTariffNumber", "originCountry", "declaredValue"),
    "CA": ("hsTariffNumber", "originCountry", "declaredValue", "naccsCode"),
    "UK": ("eoriNumber", "hsTariffNumber", "originCountry", "declaredValue"),
    "EU": ("eoriNumber", "hsTariffNumber", "originCountry", "declaredValue"),
    "CN": ("hsTariffNumber", "originCountry", "declaredValue", "chinaCustomsCode"),
    "AU": ("hsTariffNumber", "originCountry", "declaredValue", "abnNumber"),
}

RESTRICTED_ITEMS: dict[str, tuple[str, ...]] = {
    "ALL": (
        "weapons",
        "firearms",
        "guns",
        "explosives",
        "drugs",
        "narcotics",
        "hazardous materials",
        "flammable",
        "toxic",
        "radioactive",
        "currency",
        "ivory",
        "endangered species",
    ),
    "US": ("alcohol", "tobacco", "certain electronics", "food", "plants", "seeds"),
    "CN": ("political materials", "religious materials", "books", "media", "electronics"),
    "AU": ("food", "plants", "seeds", "biological materials", "soil"),
    "JP": ("prescription medication", "cosmetics", "leather goods"),
}

# code -> (restriction type, details)
RESTRICTED_DESTINATIONS: dict[str, tuple[str, str]] = {
    "CU": ("embargoed", "Subject to trade embargo"),
    "IR": ("sanctions", "Subject to comprehensive sanctions"),
    "KP": ("embargoed", "Comprehensive trade embargo and sanctions"),
    "SY": ("sanctions", "Subject to comprehensive sanctions"),
    "SD": ("sanctions", "Subject to sanctions"),
    "BY": ("sanctions", "Subject to various sanctions"),
}

ENHANCED_DOCUMENTATION_COUNTRIES = ("RU", "VE", "MM", "IQ", "LY", "ZW", "CD")
