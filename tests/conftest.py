from __future__ import annotations

import copy
import random

import pytest
from botocore.exceptions import ClientError

from live_tournament import Participant, TournamentStorage
from live_tournament.broadcast import RecordingBroadcaster
from live_tournament.config import TournamentSettings
from live_tournament.service import TournamentService


def _condition_failed(operation: str) -> ClientError:
    return ClientError(
        {
            "Error": {
                "Code": "ConditionalCheckFailedException",
                "Message": "The conditional request failed",
            }
        },
        operation,
    )


class FakeTable:
    """In-memory stand-in for the subset of the DynamoDB Table API we use."""

    def __init__(self) -> None:
        self.items: dict[tuple[str, str], dict[str, object]] = {}
        self.put_calls = 0

    def _condition_holds(self, key, condition) -> bool:
        existing = self.items.get(key)
        if condition is None:
            return True
        if isinstance(condition, str):
            if condition == "attribute_exists(pk)":
                return existing is not None
            raise AssertionError(f"Unsupported condition {condition}")
        kind = type(condition).__name__
        attribute = condition._values[0].name  # type: ignore[attr-defined]
        if kind == "AttributeNotExists":
            return existing is None or attribute not in existing
        if kind == "Equals":
            expected = condition._values[1]  # type: ignore[attr-defined]
            return existing is not None and existing.get(attribute) == expected
        raise AssertionError(f"Unsupported condition {kind}")

    def get_item(self, *, Key):
        item = self.items.get((Key["pk"], Key["sk"]))
        return {"Item": copy.deepcopy(item)} if item is not None else {}

    def put_item(self, *, Item, ConditionExpression=None):
        key = (Item["pk"], Item["sk"])
        if not self._condition_holds(key, ConditionExpression):
            raise _condition_failed("PutItem")
        self.put_calls += 1
        self.items[key] = copy.deepcopy(Item)

    def update_item(
        self, *, Key, UpdateExpression, ExpressionAttributeValues, **_kwargs
    ):
        item = self.items.setdefault((Key["pk"], Key["sk"]), dict(Key))
        assignments = UpdateExpression.removeprefix("SET ").split(",")
        for assignment in assignments:
            name, placeholder = (part.strip() for part in assignment.split("="))
            item[name] = ExpressionAttributeValues[placeholder]

    def query(self, *, KeyConditionExpression, Select="COUNT", **_kwargs):
        pk_value = None
        sk_prefix = ""
        for condition in KeyConditionExpression._values:  # type: ignore[attr-defined]
            key, value = condition._values  # type: ignore[attr-defined]
            if key.name == "pk":  # pragma: no branch - helper
                pk_value = value
            elif key.name == "sk":
                sk_prefix = value
        matching_keys = [
            key
            for key in sorted(self.items)
            if key[0] == pk_value and key[1].startswith(sk_prefix)
        ]
        items = [copy.deepcopy(self.items[key]) for key in matching_keys]
        if Select == "COUNT":
            return {"Count": len(items)}
        return {"Items": items, "Count": len(items)}

    def delete_item(self, *, Key, ConditionExpression=None):
        item_key = (Key["pk"], Key["sk"])
        if not self._condition_holds(item_key, ConditionExpression):
            raise _condition_failed("DeleteItem")
        self.items.pop(item_key, None)


@pytest.fixture
def table() -> FakeTable:
    return FakeTable()


@pytest.fixture
def storage(table: FakeTable) -> TournamentStorage:
    return TournamentStorage(table)


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def participants(storage: TournamentStorage) -> list[Participant]:
    people = [
        Participant(participant_id=f"p{index}", name=f"Player {index}")
        for index in range(1, 9)
    ]
    for person in people:
        storage.save_participant(person)
    return people


@pytest.fixture
def service(
    storage: TournamentStorage, broadcaster: RecordingBroadcaster
) -> TournamentService:
    return TournamentService(
        storage,
        broadcaster,
        settings=TournamentSettings(table_name="tournaments", max_participants=8),
        rng=random.Random(7),
    )
