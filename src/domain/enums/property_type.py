from enum import Enum


class PropertyType(str, Enum):
    HOUSE = "House"
    APARTMENT = "Apartment"
    CONDO = "Condo"


class ListingStatus(str, Enum):
    FOR_SALE = "For Sale"
    FOR_RENT = "For Rent"
