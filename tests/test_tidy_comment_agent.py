"""Item-created trigger tests for the coach comment agent."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from agents.tidy_comment_agent import TidyCommentAgent
from conftest import NOW, make_item
from logic.prompts import PromptMode
from memory.user_profile import UserProfileStore
from models.errors import GenerationTimeout, ProviderError
from models.item_record import COACH_AVATAR, COACH_NAME, UserProfile
from tidy_app.config import CoachConfig
from tools.item_store import SQLiteItemStore
from tools.text_generation import AnthropicTextProvider, GenerationClient, MockTextProvider


def _agent(
    config: CoachConfig,
    item_store: SQLiteItemStore,
    profile_store: UserProfileStore,
    provider: MockTextProvider,
    mode: PromptMode = PromptMode.SHORT,
) -> TidyCommentAgent:
    return TidyCommentAgent(
        config=config,
        item_store=item_store,
        profile_store=profile_store,
        generation_client=GenerationClient(provider, max_tokens_cap=config.max_tokens_cap),
        mode_picker=lambda: mode,
        clock=lambda: NOW,
    )


def _store_item(item_store: SQLiteItemStore, **overrides: Any) -> Dict[str, Any]:
    item = make_item(**overrides)
    item_store.create_item(item)
    return item.to_document()


def test_existing_automated_comment_means_no_calls_and_no_writes(
    config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    existing = {"userName": COACH_NAME, "isAI": True, "text": "Already here 🏠"}
    document = _store_item(item_store, comments=[existing])
    provider = MockTextProvider()

    result = _agent(config, item_store, profile_store, provider).handle_item_created("item-1", document)

    assert result["status"] == "skipped"
    assert result["reason"] == "already_commented"
    assert provider.calls == []
    assert item_store.get_item("item-1").comments == [existing]


@pytest.mark.parametrize("missing", ["userId", "name", "category"])
def test_incomplete_items_are_skipped(
    missing: str, config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    document = _store_item(item_store)
    document[missing] = None
    provider = MockTextProvider()

    result = _agent(config, item_store, profile_store, provider).handle_item_created("item-1", document)

    assert result == {"status": "skipped", "agent": "tidy_comment", "itemId": "item-1", "reason": "missing_fields"}
    assert provider.calls == []


def test_comment_is_generated_from_history_and_appended(
    config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    for index in range(4):
        _store_item(item_store, item_id=f"old-{index}", name=f"sweater {index}", days_ago=index + 1)
    document = _store_item(item_store, note="It was my dad's")
    profile_store.save_profile(UserProfile(user_id="user-1", vision="Room to breathe", streak=3, score=50))
    provider = MockTextProvider("Your dad's coat found a new story 🧥")

    result = _agent(config, item_store, profile_store, provider).handle_item_created("item-1", document)

    assert result["status"] == "ok"
    assert result["mode"] == "short"
    call = provider.calls[0]
    assert call["timeout_seconds"] == config.trigger_timeout_seconds
    assert call["max_tokens"] == config.max_tokens_cap
    assert "Total items decluttered: 5" in call["user"]
    assert "Current streak: 3 days" in call["user"]
    assert 'USER\'S VISION: "Room to breathe"' in call["user"]
    assert "It was my dad's" in call["user"]

    comments = item_store.get_item("item-1").comments
    assert comments == [
        {
            "userName": COACH_NAME,
            "authorAvatar": COACH_AVATAR,
            "isAI": True,
            "text": "Your dad's coat found a new story 🧥",
            "createdAt": NOW.isoformat(),
        }
    ]


def test_triggering_item_counts_even_before_it_is_listed(
    config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    provider = MockTextProvider("Nice 🌿")
    document = make_item().to_document()

    result = _agent(config, item_store, profile_store, provider, PromptMode.DETAILED).handle_item_created(
        "item-1", document
    )

    assert "Total items decluttered: 1" in provider.calls[0]["user"]
    assert result["status"] == "generated_not_saved"


@pytest.mark.parametrize("failure", [GenerationTimeout(10), ProviderError(500, "upstream")])
def test_generation_failure_is_terminal_and_silent(
    failure: Exception, config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    document = _store_item(item_store)
    provider = MockTextProvider([failure])

    result = _agent(config, item_store, profile_store, provider).handle_item_created("item-1", document)

    assert result["status"] == "failed"
    assert len(provider.calls) == 1
    assert item_store.get_item("item-1").comments == []


def test_missing_credentials_fail_without_raising(
    config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    document = _store_item(item_store)
    agent = TidyCommentAgent(
        config=config,
        item_store=item_store,
        profile_store=profile_store,
        generation_client=GenerationClient(AnthropicTextProvider(api_key=None)),
        mode_picker=lambda: PromptMode.SHORT,
    )

    assert agent.handle_item_created("item-1", document)["status"] == "failed"


def test_concurrent_comment_loses_the_conditional_write(
    config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    document = _store_item(item_store)
    agent = _agent(config, item_store, profile_store, MockTextProvider("First 🌱"))
    assert agent.handle_item_created("item-1", document)["status"] == "ok"

    # The same stale notification delivered twice: the document still shows no comment.
    second = _agent(config, item_store, profile_store, MockTextProvider("Second 🌱"))
    result = second.handle_item_created("item-1", document)

    assert result["status"] == "skipped"
    assert [c["text"] for c in item_store.get_item("item-1").comments] == ["First 🌱"]


def test_generate_from_prompt_uses_request_timeout(
    config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    provider = MockTextProvider("Short and sweet 🌼")
    agent = _agent(config, item_store, profile_store, provider)

    assert agent.generate_from_prompt("Say something kind") == "Short and sweet 🌼"
    assert provider.calls[0]["system"] is None
    assert provider.calls[0]["timeout_seconds"] == config.request_timeout_seconds

    provider.responses = [ProviderError(503, "down")]
    with pytest.raises(ProviderError):
        agent.generate_from_prompt("Again")


def test_unreadable_profile_fails_without_raising(
    config: CoachConfig, item_store: SQLiteItemStore, profile_store: UserProfileStore
) -> None:
    (profile_store.base_dir / "user-1.json").write_text('["not", "a", "profile"]', encoding="utf-8")
    document = _store_item(item_store)
    provider = MockTextProvider()

    result = _agent(config, item_store, profile_store, provider).handle_item_created("item-1", document)

    assert result["status"] == "failed"
    assert provider.calls == []
    assert item_store.get_item("item-1").comments == []
