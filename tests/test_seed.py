"""Tests for chat seeding."""

from app.models.chat import Chat
from app.seed import seed_chats


def test_seed_chats_skips_existing(tmp_path, database, db):
    """Test chats are loaded once and re-runs skip known ids."""
    yaml_file = tmp_path / "chats.yaml"
    yaml_file.write_text(
        "chats:\n"
        "  - id: c-1\n"
        "    name: Onboarding\n"
        "    messagesss: hello\n"
        "  - id: c-2\n"
        "    name: Payroll\n"
        "    messagesss: numbers\n"
    )

    assert seed_chats(str(yaml_file), database) == 2
    assert seed_chats(str(yaml_file), database) == 0
    assert sorted(c.chat_id for c in db.query(Chat).all()) == ["c-1", "c-2"]


def test_seed_chats_empty_file(tmp_path, database):
    """Test an empty YAML file adds nothing."""
    yaml_file = tmp_path / "empty.yaml"
    yaml_file.write_text("")

    assert seed_chats(str(yaml_file), database) == 0
