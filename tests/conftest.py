import pytest

from hondana.core.config import Settings
from hondana.core.errors import PersistenceConflict, RequestFailed

ISBN = "9784798142470"


def make_item(title="Python実践入門", **overrides):
    """Build an openBD item with a reasonably complete ONIX section."""
    onix = {
        "DescriptiveDetail": {
            "TitleDetail": {
                "TitleElement": {
                    "TitleText": {"content": title},
                    "Subtitle": {"content": "言語の力を引き出し"},
                }
            },
            "Contributor": [
                {"PersonName": {"content": "陶山 嶺"}},
                {"PersonName": {"content": "Someone Else"}},
            ],
            "Audience": [{"AudienceCodeType": "21", "AudienceCodeValue": "０３"}],
            "Subject": [
                {"SubjectSchemeIdentifier": "78", "SubjectCode": "3055"},
                {"SubjectSchemeIdentifier": "20", "SubjectHeadingText": "Python"},
            ],
        },
        "CollateralDetail": {
            "TextContent": [
                {"TextType": "02", "Text": "short"},
                {"TextType": "03", "Text": "long <b>bold</b>"},
            ]
        },
        "PublishingDetail": {
            "Imprint": {"ImprintName": "技術評論社"},
            "Publisher": {"PublisherName": "技術評論社"},
            "PublishingDate": [{"PublishingDateRole": "01", "Date": "20200115"}],
        },
        "ProductSupply": {
            "SupplyDetail": {"Price": [{"PriceType": "03", "PriceAmount": "2980"}]}
        },
    }
    onix.update(overrides)
    return {"onix": onix, "summary": {"isbn": ISBN, "title": title}}


class FakeMetadata:
    def __init__(self, items=None, fail=False):
        self.items = items or {}
        self.fail = fail
        self.calls = []

    async def fetch_batch(self, isbns):
        self.calls.append(list(isbns))
        if self.fail:
            raise RequestFailed("boom")
        return [self.items.get(isbn) for isbn in isbns]

    async def fetch_one(self, isbn):
        data = await self.fetch_batch([isbn])
        if not data or data[0] is None:
            raise RequestFailed(isbn)
        return data[0]


class FakeProbe:
    def __init__(self, found=()):
        self.found = set(found)
        self.calls = []

    async def check_one(self, isbn):
        self.calls.append([isbn])
        return isbn in self.found

    async def check_all(self, isbns):
        self.calls.append(list(isbns))
        return {isbn: isbn in self.found for isbn in isbns}


class FakeStore:
    def __init__(self, existing=()):
        self.records = {isbn: None for isbn in existing}
        self.exists_calls = []
        self.created = []

    def exists_any(self, isbns):
        self.exists_calls.append(list(isbns))
        return {isbn for isbn in isbns if isbn in self.records}

    def create(self, record):
        if record.isbn in self.records:
            raise PersistenceConflict(record.isbn)
        self.records[record.isbn] = record
        self.created.append(record)
        return record


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=tmp_path / "books.db")
