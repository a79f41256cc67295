from __future__ import annotations

from collections.abc import Iterable

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from .errors import ConcurrentModification, InvalidAnswer
from .models import MatchAnswers, Participant, Tournament

ACTIVE_POINTER_KEY: dict[str, str] = {"pk": "TOURNAMENT", "sk": "ACTIVE"}
_CONDITION_FAILED = "ConditionalCheckFailedException"


def _condition_failed(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == _CONDITION_FAILED


class TournamentStorage:
    def __init__(self, table) -> None:
        self._table = table

    def ensure_table(self) -> None:
        if self._table is None:
            raise RuntimeError("Tournament table is not configured")

    # ----- Participants -----
    def get_participant(self, participant_id: str) -> Participant | None:
        self.ensure_table()
        resp = self._table.get_item(Key=Participant.key(participant_id))
        item = resp.get("Item")
        if not item:
            return None
        return Participant.from_item(item)

    def get_participants(
        self, participant_ids: Iterable[str]
    ) -> dict[str, Participant]:
        found: dict[str, Participant] = {}
        for participant_id in participant_ids:
            participant = self.get_participant(participant_id)
            if participant is not None:
                found[participant_id] = participant
        return found

    def save_participant(self, participant: Participant) -> None:
        self.ensure_table()
        self._table.put_item(Item=participant.to_item())

    def update_tournament_alias(self, participant: Participant) -> None:
        self.ensure_table()
        self._table.update_item(
            Key=Participant.key(participant.participant_id),
            UpdateExpression="SET tournamentName = :name, avatar = :avatar",
            ExpressionAttributeValues={
                ":name": participant.tournament_name,
                ":avatar": participant.avatar_token,
            },
        )

    # ----- Tournaments -----
    def get_tournament(self, tournament_id: str) -> Tournament | None:
        self.ensure_table()
        resp = self._table.get_item(Key=Tournament.key(tournament_id))
        item = resp.get("Item")
        if not item:
            return None
        return Tournament.from_item(item)

    def save_tournament(
        self, tournament: Tournament, *, expected_version: int | None = None
    ) -> None:
        """Write ``tournament`` if nobody else changed it since it was loaded.

        ``expected_version`` is the version the caller loaded; ``None`` means
        the tournament must not exist yet.
        """
        self.ensure_table()
        if expected_version is None:
            condition = Attr("pk").not_exists()
        else:
            condition = Attr("version").eq(expected_version)
        try:
            self._table.put_item(
                Item=tournament.to_item(), ConditionExpression=condition
            )
        except ClientError as exc:
            if _condition_failed(exc):
                raise ConcurrentModification(
                    f"Tournament {tournament.tournament_id} was modified concurrently"
                ) from exc
            raise

    def get_active_tournament_id(self) -> str | None:
        self.ensure_table()
        resp = self._table.get_item(Key=dict(ACTIVE_POINTER_KEY))
        item = resp.get("Item")
        if not item or not item.get("tournamentId"):
            return None
        return str(item["tournamentId"])

    def get_active_tournament(self) -> Tournament | None:
        tournament_id = self.get_active_tournament_id()
        if tournament_id is None:
            return None
        return self.get_tournament(tournament_id)

    def set_active(self, tournament_id: str) -> None:
        self.ensure_table()
        item: dict[str, object] = dict(ACTIVE_POINTER_KEY)
        item["tournamentId"] = tournament_id
        self._table.put_item(Item=item)

    def clear_active(self) -> None:
        self.ensure_table()
        try:
            self._table.delete_item(
                Key=dict(ACTIVE_POINTER_KEY),
                ConditionExpression="attribute_exists(pk)",
            )
        except ClientError as exc:
            if not _condition_failed(exc):
                raise

    # ----- Match answers -----
    def save_answers(self, submission: MatchAnswers) -> None:
        self.ensure_table()
        try:
            self._table.put_item(
                Item=submission.to_item(),
                ConditionExpression=Attr("pk").not_exists(),
            )
        except ClientError as exc:
            if _condition_failed(exc):
                raise InvalidAnswer(
                    "Answers for this match were already submitted"
                ) from exc
            raise

    def get_answers(
        self, tournament_id: str, round_number: int, match_id: str, participant_id: str
    ) -> MatchAnswers | None:
        self.ensure_table()
        resp = self._table.get_item(
            Key=MatchAnswers.key(tournament_id, round_number, match_id, participant_id)
        )
        item = resp.get("Item")
        if not item:
            return None
        return MatchAnswers.from_item(item)

    def list_match_answers(
        self, tournament_id: str, round_number: int, match_id: str
    ) -> dict[str, MatchAnswers]:
        self.ensure_table()
        resp = self._table.query(
            KeyConditionExpression=Key("pk").eq(
                MatchAnswers.PK_TEMPLATE % tournament_id
            )
            & Key("sk").begins_with(MatchAnswers.match_prefix(round_number, match_id)),
            Select="ALL_ATTRIBUTES",
        )
        submissions = [MatchAnswers.from_item(item) for item in resp.get("Items", [])]
        return {submission.participant_id: submission for submission in submissions}


__all__ = ["ACTIVE_POINTER_KEY", "TournamentStorage"]
