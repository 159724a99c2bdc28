"""Leaderboard persistence.

Two backends implement the same List/Append contract:

- ``JsonFileLeaderboardStore`` keeps every entry in one JSON array on disk and
  rewrites the whole file on each append (last writer wins; appends are not
  locked across processes)
- ``SqlLeaderboardStore`` keeps entries in the ``leaderboard_entry`` table

Entries are never updated or deleted.
"""
import json
import os
import re
import time
from datetime import datetime, timezone
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from abgame import db
from abgame.errors import StorageUnavailable, ValidationError
from abgame.models import LeaderboardEntry, isoformat_utc

# Largest value a 64-bit INTEGER column holds; both backends share the limit
MAX_SCORE = 2 ** 63 - 1
_INTEGER_RE = re.compile(r'-?[0-9]+')


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_score(value, field: str) -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f'{field} is required')
    if isinstance(value, int):
        score = value
    elif isinstance(value, str) and _INTEGER_RE.fullmatch(value.strip()):
        score = int(value.strip())
    else:
        raise ValidationError(f'{field} must be an integer')
    if score < 0:
        raise ValidationError(f'{field} must not be negative')
    if score > MAX_SCORE:
        raise ValidationError(f'{field} is too large')
    return score


def validate_submission(name, round1_score, round2_score):
    """Return cleaned ``(name, round1, round2)`` or raise ValidationError."""
    cleaned = name.strip() if isinstance(name, str) else ''
    if not cleaned:
        raise ValidationError('name is required')
    return (
        cleaned,
        _coerce_score(round1_score, 'round1Score'),
        _coerce_score(round2_score, 'round2Score'),
    )


def sort_by_delta(entries: List[dict]) -> List[dict]:
    return sorted(entries, key=lambda e: e['delta'], reverse=True)


class LeaderboardStore:
    """Interface shared by the storage backends."""

    def initialize(self) -> None:
        raise NotImplementedError

    def list_entries(self) -> List[dict]:
        raise NotImplementedError

    def append(self, name, round1_score, round2_score) -> dict:
        raise NotImplementedError

    def submit(self, payload: dict) -> dict:
        """Append from a ``{name, round1Score, round2Score}`` payload."""
        if not isinstance(payload, dict):
            raise ValidationError('submission must be an object')
        return self.append(payload.get('name'), payload.get('round1Score'), payload.get('round2Score'))


class JsonFileLeaderboardStore(LeaderboardStore):
    def __init__(self, path):
        self.path = os.fspath(path)
        self._last_id = 0

    def initialize(self) -> None:
        if os.path.exists(self.path):
            return
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as fh:
                json.dump([], fh)
        except OSError as exc:
            raise StorageUnavailable('initialize', str(exc)) from exc

    def _read(self, operation: str) -> List[dict]:
        try:
            with open(self.path, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StorageUnavailable(operation, str(exc)) from exc
        if not isinstance(data, list):
            raise StorageUnavailable(operation, 'leaderboard file does not hold a list')
        for index, entry in enumerate(data):
            if not isinstance(entry, dict) or not all(
                _is_int(entry.get(field)) for field in ('id', 'delta')
            ):
                raise StorageUnavailable(operation, f'malformed leaderboard entry at index {index}')
        return data

    def _next_id(self, entries: List[dict]) -> int:
        # Millisecond clock, bumped so ids stay unique within and across runs
        known = [e['id'] for e in entries]
        floor = max(known + [self._last_id])
        self._last_id = max(int(time.time() * 1000), floor + 1)
        return self._last_id

    def list_entries(self) -> List[dict]:
        return sort_by_delta(self._read('read'))

    def append(self, name, round1_score, round2_score) -> dict:
        name, round1_score, round2_score = validate_submission(name, round1_score, round2_score)
        entries = self._read('save')
        entry = {
            'id': self._next_id(entries),
            'name': name,
            'round1Score': round1_score,
            'round2Score': round2_score,
            'delta': round2_score - round1_score,
            'timestamp': isoformat_utc(datetime.now(timezone.utc)),
        }
        entries.append(entry)
        try:
            with open(self.path, 'w', encoding='utf-8') as fh:
                json.dump(entries, fh, indent=2)
        except OSError as exc:
            raise StorageUnavailable('save', str(exc)) from exc
        return entry


class SqlLeaderboardStore(LeaderboardStore):
    """Store backed by Flask-SQLAlchemy; needs an application context."""

    def initialize(self) -> None:
        try:
            db.create_all()
        except SQLAlchemyError as exc:
            raise StorageUnavailable('initialize', str(exc)) from exc

    def list_entries(self) -> List[dict]:
        try:
            rows = LeaderboardEntry.query.order_by(LeaderboardEntry.delta.desc()).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageUnavailable('read', str(exc)) from exc
        return [row.to_dict() for row in rows]

    def append(self, name, round1_score, round2_score) -> dict:
        name, round1_score, round2_score = validate_submission(name, round1_score, round2_score)
        row = LeaderboardEntry(
            name=name,
            round1_score=round1_score,
            round2_score=round2_score,
            delta=round2_score - round1_score,
        )
        try:
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageUnavailable('save', str(exc)) from exc
        return row.to_dict()


def build_store(config) -> LeaderboardStore:
    backend = (config.get('LEADERBOARD_BACKEND') or 'file').lower()
    if backend == 'file':
        return JsonFileLeaderboardStore(config['LEADERBOARD_FILE'])
    if backend == 'sql':
        return SqlLeaderboardStore()
    raise ValueError(f"Unknown LEADERBOARD_BACKEND {backend!r}")


def get_store(app=None) -> Optional[LeaderboardStore]:
    app = app or current_app
    return app.extensions.get('leaderboard_store')
