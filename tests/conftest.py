from datetime import date
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from fee_ledger.core.ledger import ClassRecord, StudentRecord
from fee_ledger.main import app


@pytest.fixture()
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def july_as_of() -> date:
    return date(2024, 7, 15)


@pytest.fixture()
def two_student_classes() -> list:
    return [ClassRecord(id=1, class_name="5", school_fees=1000)]


@pytest.fixture()
def two_student_cohort() -> list:
    """Student A paid January..June in full; student B never paid and carries 500 of old dues."""
    paid_months = {
        key: f"1000=d=2024-{index + 1:02d}-01"
        for index, key in enumerate(("january", "february", "march", "april", "may", "june"))
    }
    student_a = StudentRecord(name="Asha", roll_number="1", class_name="5", **paid_months)
    student_b = StudentRecord(name="Bilal", roll_number="2", class_name="5", previous_dues=500)
    return [student_a, student_b]


@pytest.fixture()
def two_student_payload(two_student_cohort, two_student_classes, july_as_of) -> dict:
    """The same cohort as a JSON request body."""
    return {
        "students": [s.model_dump(mode="json", by_alias=True) for s in two_student_cohort],
        "classes": [c.model_dump(mode="json") for c in two_student_classes],
        "as_of": july_as_of.isoformat(),
    }
