from types import MappingProxyType

import pytest

from memory import ActionRequest, ConversationMemory, Turn, TurnRole


def _users(*texts):
    return [Turn.user(text) for text in texts]


def test_default_cap_is_fifty():
    assert ConversationMemory().max_messages == 50


def test_cap_keeps_instruction_and_last_turns_in_order():
    memory = ConversationMemory(max_messages=3)
    memory.append([Turn.instruction("be careful")])
    for index in range(5):
        role_turn = Turn.user(f"u{index}") if index % 2 == 0 else Turn.assistant(f"a{index}")
        memory.append([role_turn])

    snapshot = memory.snapshot()
    assert [turn.content for turn in snapshot] == ["be careful", "u2", "a3", "u4"]
    assert snapshot[0].role == TurnRole.INSTRUCTION


def test_cap_invariant_holds_after_every_append():
    memory = ConversationMemory(max_messages=4)
    memory.append([Turn.instruction("sys")])
    for batch_size in [1, 3, 0, 5, 2, 7]:
        memory.append(_users(*[f"m{i}" for i in range(batch_size)]))
        assert memory.size() - 1 <= 4
        assert sum(1 for turn in memory.snapshot() if not turn.is_instruction) <= 4


def test_instruction_survives_until_clear():
    memory = ConversationMemory(max_messages=2)
    memory.append(_users("first"))
    memory.append([Turn.instruction("standing")])
    for index in range(10):
        memory.append(_users(f"later {index}"))
        assert memory.snapshot()[0].content == "standing"
    memory.clear()
    assert memory.snapshot() == []
    assert memory.size() == 0


def test_instruction_is_listed_first_even_when_appended_later():
    memory = ConversationMemory(max_messages=10)
    memory.append(_users("hello"))
    memory.append([Turn.instruction("standing")])
    assert [turn.content for turn in memory.snapshot()] == ["standing", "hello"]


def test_multiple_instructions_are_all_kept():
    memory = ConversationMemory(max_messages=1)
    memory.append([Turn.instruction("one"), Turn.user("x"), Turn.instruction("two"), Turn.user("y")])
    assert [turn.content for turn in memory.snapshot()] == ["one", "two", "y"]


def test_batch_append_trims_once_from_the_front():
    memory = ConversationMemory(max_messages=3)
    memory.append(_users("a", "b"))
    memory.append(_users("c", "d", "e"))
    assert [turn.content for turn in memory.snapshot()] == ["c", "d", "e"]


def test_append_empty_is_noop():
    memory = ConversationMemory(max_messages=3)
    memory.append(_users("a"))
    before = memory.snapshot()
    memory.append([])
    assert memory.snapshot() == before


@pytest.mark.parametrize("cap", [0, -5])
def test_non_positive_cap_keeps_only_instruction(cap):
    memory = ConversationMemory(max_messages=cap)
    memory.append([Turn.instruction("sys")])
    memory.append(_users("a", "b"))
    assert [turn.content for turn in memory.snapshot()] == ["sys"]


def test_non_positive_cap_without_instruction_is_empty():
    memory = ConversationMemory(max_messages=0)
    memory.append(_users("a"))
    assert memory.size() == 0


def test_snapshot_is_a_defensive_copy():
    memory = ConversationMemory(max_messages=5)
    memory.append(_users("a"))
    snapshot = memory.snapshot()
    memory.append(_users("b"))
    snapshot.append(Turn.user("injected"))
    assert [turn.content for turn in snapshot] == ["a", "injected"]
    assert [turn.content for turn in memory.snapshot()] == ["a", "b"]


def test_tail():
    memory = ConversationMemory(max_messages=10)
    memory.append([Turn.instruction("sys")])
    memory.append(_users("a", "b", "c"))
    assert [turn.content for turn in memory.tail(2)] == ["b", "c"]
    assert [turn.content for turn in memory.tail(99)] == ["sys", "a", "b", "c"]
    assert memory.tail(0) == []


def test_size_counts_everything():
    memory = ConversationMemory(max_messages=10)
    memory.append([Turn.instruction("sys")])
    memory.append(_users("a", "b"))
    assert memory.size() == 3
    assert len(memory) == 3


def test_turns_are_immutable():
    turn = Turn.user("hi")
    with pytest.raises(AttributeError):
        turn.content = "changed"


def test_sentences_describe_requests_and_results():
    memory = ConversationMemory()
    memory.append(
        [
            Turn.assistant("", [ActionRequest(id="1", name="browser_goto", arguments={"url": "https://a.b"})]),
            Turn.action_result("1", "browser_goto", "ERROR: nope", failed=True),
        ]
    )
    assert memory.recent_sentences() == ["assistant requested browser_goto", "browser_goto failed"]
    assert memory.recent_sentences(0) == []


def test_request_arguments_are_read_only_and_copied():
    arguments = {"url": "https://a.b", "headers": {"x": "1"}}
    request = ActionRequest(id="1", name="browser_goto", arguments=arguments)
    memory = ConversationMemory()
    memory.append([Turn.assistant("", [request])])

    stored = memory.snapshot()[0].requests[0].arguments
    assert isinstance(stored, MappingProxyType)
    with pytest.raises(TypeError):
        stored["url"] = "https://evil.example"

    arguments["url"] = "https://changed.example"
    arguments["headers"]["x"] = "2"
    assert stored["url"] == "https://a.b"
    assert stored["headers"] == {"x": "1"}


def test_request_without_arguments_is_empty_mapping():
    assert dict(ActionRequest(id="1", name="browser_find_links").arguments) == {}
