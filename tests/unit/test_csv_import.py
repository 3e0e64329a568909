"""
Tests for CSV import parsers.
"""

from datetime import date

import pytest

from exceptions import CSVImportError
from parsers.csv_import import parse_orders_csv, parse_varieties_csv


VARIETIES = ["Sunflower", "Radish", "Peas"]


# ===================
# ORDERS
# ===================

class TestParseOrdersCsv:

    def test_rows_grouped_by_client_and_date(self):
        text = (
            "clientName,deliveryDate,variety,quantity,location\n"
            "Green Cafe,2024-01-20,Sunflower,4,Indiranagar\n"
            "Green Cafe,2024-01-20,Radish,2,Koramangala\n"
            "Green Cafe,2024-01-21,Peas,1,\n"
            "Deli,2024-01-20,Sunflower,3,\n"
        )

        result = parse_orders_csv(text, VARIETIES)

        assert result.rows == 4
        assert len(result.orders) == 3
        first = result.orders[0]
        assert first.client_name == "Green Cafe"
        assert first.delivery_date == date(2024, 1, 20)
        assert first.location == "Indiranagar"
        assert [(i.variety, i.quantity) for i in first.items] == [("Sunflower", 4), ("Radish", 2)]
        assert result.orders[1].location is None

    def test_location_column_optional(self):
        text = "clientName,deliveryDate,variety,quantity\nDeli,2024-01-20,Peas,2\n"

        result = parse_orders_csv(text, VARIETIES)

        assert result.orders[0].location is None

    def test_byte_order_mark_and_blank_lines(self):
        text = "\ufeffclientName,deliveryDate,variety,quantity\n\nDeli,2024-01-20,Peas,2.0\n"

        result = parse_orders_csv(text, VARIETIES)

        assert result.orders[0].items[0].quantity == 2

    def test_missing_header(self):
        with pytest.raises(CSVImportError) as exc:
            parse_orders_csv("clientName,deliveryDate,quantity\nDeli,2024-01-20,2\n", VARIETIES)

        assert exc.value.message == 'Missing required header column: "variety". Please check the file format.'

    def test_unknown_variety_names_row(self):
        text = (
            "clientName,deliveryDate,variety,quantity\n"
            "Deli,2024-01-20,Peas,2\n"
            "Deli,2024-01-20,Basil,2\n"
        )

        with pytest.raises(CSVImportError) as exc:
            parse_orders_csv(text, VARIETIES)

        assert exc.value.row == 3
        assert exc.value.message == 'Row 3: variety "Basil" is not a valid microgreen variety.'

    @pytest.mark.parametrize("row,message", [
        (",2024-01-20,Peas,2", "clientName is missing."),
        ("Deli,20/01/2024,Peas,2", "deliveryDate is missing or not in YYYY-MM-DD format."),
        ("Deli,2024-01-20,,2", "variety is missing."),
        ("Deli,2024-01-20,Peas,0", "quantity must be a positive whole number."),
        ("Deli,2024-01-20,Peas,1.5", "quantity must be a positive whole number."),
        ("Deli,2024-01-20,Peas,two", "quantity must be a positive whole number."),
    ])
    def test_invalid_rows(self, row, message):
        text = f"clientName,deliveryDate,variety,quantity\n{row}\n"

        with pytest.raises(CSVImportError) as exc:
            parse_orders_csv(text, VARIETIES)

        assert exc.value.message == f"Row 2: {message}"

    def test_empty_file(self):
        with pytest.raises(CSVImportError):
            parse_orders_csv("", VARIETIES)

    def test_header_only(self):
        with pytest.raises(CSVImportError):
            parse_orders_csv("clientName,deliveryDate,variety,quantity\n", VARIETIES)


# ===================
# VARIETIES
# ===================

class TestParseVarietiesCsv:

    def test_header_aliases(self):
        text = "Variety Name,Growth Cycle\nBasil,12\nAmaranth,10\n"

        result = parse_varieties_csv(text, VARIETIES)

        assert [(v.name, v.growth_cycle_days) for v in result.varieties] == [("Basil", 12), ("Amaranth", 10)]

    def test_existing_name_rejected_ignoring_case(self):
        with pytest.raises(CSVImportError) as exc:
            parse_varieties_csv("name,growthCycleDays\nradish,7\n", VARIETIES)

        assert exc.value.message == 'Row 2: Variety "radish" already exists.'

    def test_duplicate_in_file(self):
        with pytest.raises(CSVImportError) as exc:
            parse_varieties_csv("name,days\nBasil,12\nBASIL,12\n", VARIETIES)

        assert exc.value.row == 3
        assert "Duplicate variety" in exc.value.message

    def test_missing_name(self):
        with pytest.raises(CSVImportError) as exc:
            parse_varieties_csv("name,days\n,12\n", VARIETIES)

        assert exc.value.message == "Row 2: 'name' is missing."

    def test_bad_cycle(self):
        with pytest.raises(CSVImportError) as exc:
            parse_varieties_csv("name,days\nBasil,-3\n", VARIETIES)

        assert "must be a positive whole number" in exc.value.message

    def test_missing_days_header(self):
        with pytest.raises(CSVImportError) as exc:
            parse_varieties_csv("name,color\nBasil,green\n", VARIETIES)

        assert exc.value.message == 'Missing required header column: "growthCycleDays".'
