"""Telegram screens rendered from interaction snapshots (no state changes here)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from telegram import ReplyKeyboardMarkup, ReplyKeyboardRemove

from arihante.models.interaction import StateSnapshot, ViewState

TITLE = "A-R-I-H-A-N-T-E"

ACTION_LABELS = {
    "daily": "Aaj kya karna hai",
    "problem": "Problem hai",
    "solve": "Solve",
    "back": "← Back",
    "done": "Done",
}

LEGACY_TEXT_ALIASES = {
    "Back": "back",
    "/solve": "solve",
    "/done": "done",
    "/back": "back",
}

REQUEST_FAILED_NOTICE = "Could not get an answer this time. Please try again."

Markup = Union[ReplyKeyboardMarkup, ReplyKeyboardRemove]


@dataclass(frozen=True)
class Screen:
    text: str
    markup: Markup


def action_from_text(text: str) -> Optional[str]:
    raw = (text or "").strip()
    if not raw:
        return None
    alias = LEGACY_TEXT_ALIASES.get(raw)
    if alias:
        return alias
    for action, label in ACTION_LABELS.items():
        if raw == label:
            return action
    return None


def _keyboard(rows: list[list[str]], placeholder: str) -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=rows,
        resize_keyboard=True,
        is_persistent=True,
        one_time_keyboard=False,
        input_field_placeholder=placeholder,
    )


def _listening_line(snap: StateSnapshot) -> list[str]:
    if snap.listening:
        return ["", "🎙️ Listening..."]
    return []


def home_screen(snap: StateSnapshot, notice: Optional[str] = None) -> Screen:
    lines = [f"**{TITLE}**"]
    if notice:
        lines += ["", notice]
    markup = _keyboard(
        [[ACTION_LABELS["daily"]], [ACTION_LABELS["problem"]]],
        placeholder="Choose an option",
    )
    return Screen(text="\n".join(lines), markup=markup)


def input_problem_screen(snap: StateSnapshot) -> Screen:
    lines = ["**What is the problem?**", "Explain briefly. I will fix it."]
    if snap.can_submit:
        hint = f"Tap {ACTION_LABELS['solve']} to send it, or type more to add to it."
        lines += ["", "Draft:", snap.input_text, "", hint]
    if snap.voice_capability:
        lines += ["", "You can also send a voice note."]
    lines += _listening_line(snap)
    markup = _keyboard(
        [[ACTION_LABELS["solve"]], [ACTION_LABELS["back"]]],
        placeholder="Type here...",
    )
    return Screen(text="\n".join(lines), markup=markup)


def loading_screen(snap: StateSnapshot) -> Screen:
    return Screen(text="Thinking...", markup=ReplyKeyboardRemove())


def result_screen(snap: StateSnapshot) -> Screen:
    lines = [f"**{TITLE}**", "", snap.answer or ""]
    rows = [[ACTION_LABELS["done"]]]
    if snap.can_submit:
        lines += ["", "Follow-up draft:", snap.input_text]
        rows = [[ACTION_LABELS["solve"], ACTION_LABELS["done"]]]
    lines += _listening_line(snap)
    markup = _keyboard(rows, placeholder="Ask a follow-up question...")
    return Screen(text="\n".join(lines), markup=markup)


def render(snap: StateSnapshot, notice: Optional[str] = None) -> Screen:
    if snap.view == ViewState.HOME:
        return home_screen(snap, notice=notice)
    if snap.view == ViewState.INPUT_PROBLEM:
        return input_problem_screen(snap)
    if snap.view == ViewState.LOADING:
        return loading_screen(snap)
    return result_screen(snap)
