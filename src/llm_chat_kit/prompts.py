from __future__ import annotations

"""System prompt library.

Built-in prompts come from ``config.yaml`` and are read-only. User prompts
are stored through SQLAlchemy and carry a ``user-`` id prefix so clients can
tell the two apart.
"""

import uuid
from typing import Any, Dict, List, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .config import BuiltinPrompt
from .db.models import PromptRecord
from .db.session import SessionLocal, init_db
from .errors import ChatKitError, PromptNotFoundError, ReadOnlyPromptError

USER_PROMPT_PREFIX = "user-"


def is_user_prompt(prompt_id: str) -> bool:
    return prompt_id.startswith(USER_PROMPT_PREFIX)


def _to_dict(rec: PromptRecord) -> Dict[str, Any]:
    return {"id": rec.id, "name": rec.name, "prompt": rec.prompt, "isDefault": False}


class PromptStore:
    """CRUD over user prompts, with built-ins listed first."""

    def __init__(self, builtins: Sequence[BuiltinPrompt] = ()):
        self.builtins = {p.id: p for p in builtins}
        # Ensure tables exist on first use
        init_db()

    # ------------------------------------------------------------------
    def list_prompts(self) -> List[Dict[str, Any]]:
        with SessionLocal() as session:
            recs = session.execute(
                select(PromptRecord).order_by(PromptRecord.created_at, PromptRecord.id)
            ).scalars().all()
            user_prompts = [_to_dict(r) for r in recs]
        return [p.to_dict() for p in self.builtins.values()] + user_prompts

    def get(self, prompt_id: str) -> Dict[str, Any]:
        if prompt_id in self.builtins:
            return self.builtins[prompt_id].to_dict()
        with SessionLocal() as session:
            rec = session.get(PromptRecord, prompt_id)
            if rec is None:
                raise PromptNotFoundError(prompt_id)
            return _to_dict(rec)

    def create(self, name: str, prompt: str) -> Dict[str, Any]:
        rec = PromptRecord(id=f"{USER_PROMPT_PREFIX}{uuid.uuid4().hex[:12]}", name=name, prompt=prompt)
        with SessionLocal() as session:
            try:
                session.add(rec)
                session.commit()
                session.refresh(rec)
            except SQLAlchemyError as exc:
                session.rollback()
                raise ChatKitError(str(exc)) from exc
            return _to_dict(rec)

    def update(self, prompt_id: str, name: str, prompt: str) -> Dict[str, Any]:
        self._check_writable(prompt_id)
        with SessionLocal() as session:
            rec = session.get(PromptRecord, prompt_id)
            if rec is None:
                raise PromptNotFoundError(prompt_id)
            try:
                rec.name = name
                rec.prompt = prompt
                session.commit()
                session.refresh(rec)
            except SQLAlchemyError as exc:
                session.rollback()
                raise ChatKitError(str(exc)) from exc
            return _to_dict(rec)

    def delete(self, prompt_id: str) -> None:
        self._check_writable(prompt_id)
        with SessionLocal() as session:
            rec = session.get(PromptRecord, prompt_id)
            if rec is None:
                raise PromptNotFoundError(prompt_id)
            try:
                session.delete(rec)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise ChatKitError(str(exc)) from exc

    def _check_writable(self, prompt_id: str) -> None:
        if prompt_id in self.builtins:
            raise ReadOnlyPromptError(prompt_id)
        if not is_user_prompt(prompt_id):
            raise PromptNotFoundError(prompt_id)
