"""
Listing Loader Tests

Parsing scraper JSON into ListingRecords and loading a listings directory.
"""

import json

import pytest

from fairvalue.data import listings_to_frame, load_listings, parse_listings
from fairvalue.engine.types import ListingRecord, OutdoorSpace, ParkingType

SCRAPED_LISTING = {
    "address": "12 3380 Gladwin Rd",
    "city": "Coquitlam",
    "subArea": "Westwood Plateau",
    "price": 905_000,
    "listPrice": 899_000,
    "soldDate": "2025-03-14",
    "sqft": 1480,
    "year": 2011,
    "bedrooms": 3,
    "bathrooms": 2.5,
    "levels": 3,
    "fee": 365.5,
    "propertyTax": 3120,
    "assessment": 870_000,
    "parkingType": "garage_double",
    "parking": 2,
    "outdoorSpace": "Balcony",
    "isEndUnit": True,
    "hasAC": None,
    "rainscreen": True,
    "condition": 4,
    "features": ["In Suite Laundry"],
}


class TestListingRecord:
    def test_camel_case_aliases(self):
        record = ListingRecord.model_validate(SCRAPED_LISTING)
        assert record.sub_area == "Westwood Plateau"
        assert record.year_built == 2011
        assert record.strata_fee == 365.5
        assert record.property_tax == 3120
        assert record.list_price == 899_000
        assert record.parking_spaces == 2
        assert record.is_end_unit is True
        assert record.is_rainscreened is True

    def test_null_flag_is_false(self):
        assert ListingRecord.model_validate(SCRAPED_LISTING).has_ac is False

    def test_categoricals_normalized(self):
        record = ListingRecord.model_validate(SCRAPED_LISTING)
        assert record.parking_type == ParkingType.GARAGE_DOUBLE
        assert record.outdoor_space == OutdoorSpace.BALCONY

    def test_unknown_parking_type_is_none(self):
        record = ListingRecord.model_validate({**SCRAPED_LISTING, "parkingType": "valet"})
        assert record.parking_type is None

    @pytest.mark.parametrize("condition", [0, 6, "excellent"])
    def test_unusable_condition_is_none(self, condition):
        record = ListingRecord.model_validate({**SCRAPED_LISTING, "condition": condition})
        assert record.condition is None

    def test_location_label(self):
        assert ListingRecord.model_validate(SCRAPED_LISTING).location == "Coquitlam - Westwood Plateau"
        assert ListingRecord(city="Burnaby", sub_area=None).location == "Burnaby - Other"

    def test_missing_price_is_invalid_not_error(self):
        record = ListingRecord.model_validate({**SCRAPED_LISTING, "price": None})
        assert record.price == 0
        assert not record.is_valid_for_fit


class TestParseListings:
    def test_single_object(self):
        assert len(parse_listings(SCRAPED_LISTING)) == 1

    def test_list_of_objects(self):
        assert len(parse_listings([SCRAPED_LISTING, SCRAPED_LISTING])) == 2

    def test_invalid_entries_skipped(self, caplog):
        records = parse_listings([SCRAPED_LISTING, "junk", {**SCRAPED_LISTING, "sqft": "big"}])
        assert len(records) == 1
        assert "Skipping" in caplog.text


class TestLoadListings:
    def test_loads_directory(self, tmp_path):
        (tmp_path / "a.json").write_text(json.dumps(SCRAPED_LISTING))
        (tmp_path / "b.json").write_text(json.dumps([SCRAPED_LISTING, SCRAPED_LISTING]))
        assert len(load_listings(tmp_path)) == 3

    def test_unreadable_file_skipped(self, tmp_path, caplog):
        (tmp_path / "good.json").write_text(json.dumps(SCRAPED_LISTING))
        (tmp_path / "bad.json").write_text("{not json")
        assert len(load_listings(tmp_path)) == 1
        assert "bad.json" in caplog.text

    def test_ignores_other_files(self, tmp_path):
        (tmp_path / "notes.txt").write_text("hello")
        assert load_listings(tmp_path) == []

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_listings(tmp_path / "missing")


class TestListingsFrame:
    def test_frame_columns(self):
        records = parse_listings([SCRAPED_LISTING, {**SCRAPED_LISTING, "price": 50_000}])
        frame = listings_to_frame(records)
        assert len(frame) == 2
        assert list(frame["is_valid"]) == [True, False]
        assert frame.loc[0, "location"] == "Coquitlam - Westwood Plateau"
        assert "description" not in frame.columns
