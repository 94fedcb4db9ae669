"""Tests for api/models.py — ingestion validation rules."""
import pytest
from pydantic import ValidationError

from api.models import DispositionCreate, DispositionOut, ErrorResponse


def _create(**overrides):
    data = {
        "speciesName": "Mouse", "strainName": "C57BL/6", "sex": "female",
        "count": 1, "dateOfBirth": "2023-08-01", "removalDate": "2024-02-15",
    }
    data.update(overrides)
    return DispositionCreate.model_validate(data)


class TestDispositionCreate:
    def test_blank_optional_fields_become_none(self):
        m = _create(reasonCode=" ", projectReference="", transferInstitution="")
        assert m.reason_code is None
        assert m.project_reference is None
        assert m.transfer_institution is None

    @pytest.mark.parametrize("dob", ["", None])
    def test_date_of_birth_required(self, dob):
        with pytest.raises(ValidationError):
            _create(dateOfBirth=dob)

    def test_birth_after_removal_rejected(self):
        with pytest.raises(ValidationError, match="dateOfBirth"):
            _create(dateOfBirth="2024-02-16")

    def test_birth_on_removal_day_accepted(self):
        assert _create(dateOfBirth="2024-02-15").date_of_birth == "2024-02-15"

    def test_rejects_strain_of_other_species(self):
        with pytest.raises(ValidationError, match="not a Mouse strain"):
            _create(strainName="Wistar")

    def test_to_row_uses_column_names(self):
        row = _create().to_row()
        assert row["species_name"] == "Mouse"
        assert row["removal_date"] == "2024-02-15"
        assert "speciesName" not in row


class TestCheckCatalog:
    def test_defaults_filled(self, catalog):
        checked = _create(reasonCode="BREED-01").check_catalog(catalog)
        assert checked.project_reference == "-"
        assert checked.transfer_institution is None

    def test_no_reason(self, catalog):
        checked = _create().check_catalog(catalog)
        assert checked.reason_code is None
        assert checked.project_reference == "-"

    def test_original_not_modified(self, catalog):
        original = _create(reasonCode="HEALTH-01", projectReference="PRJ")
        original.check_catalog(catalog)
        assert original.project_reference == "PRJ"

    def test_requires_project_from_catalog(self, small_catalog):
        with pytest.raises(ValueError, match="project"):
            _create(reasonCode="A-1").check_catalog(small_catalog)
        assert _create(reasonCode="A-2").check_catalog(small_catalog).project_reference == "-"

    def test_unknown_code(self, small_catalog):
        with pytest.raises(ValueError, match="Unknown reason"):
            _create(reasonCode="EXP-01").check_catalog(small_catalog)


class TestDispositionOut:
    def test_from_record_serializes_camel_case(self, record_factory):
        out = DispositionOut.from_record(record_factory(id="12"))
        dumped = out.model_dump(by_alias=True)
        assert dumped["id"] == "12"
        assert dumped["speciesName"] == "Mouse"
        assert dumped["projectReference"] == "-"


class TestErrorResponse:
    def test_matches_handler_body(self, client):
        body = client.post("/api/v1/dispositions", json={
            "speciesName": "Rat", "strainName": "Wistar", "sex": "male",
            "count": 1, "dateOfBirth": "2023-06-01", "removalDate": "2024-01-01",
            "reasonCode": "EXP-01",
        }).json()
        err = ErrorResponse.model_validate(body)
        assert err.status_code == 400
        assert err.error == "Bad request"

    def test_documented_in_openapi(self, client):
        spec = client.get("/openapi.json").json()
        post = spec["paths"]["/api/v1/dispositions"]["post"]
        assert "400" in post["responses"]
