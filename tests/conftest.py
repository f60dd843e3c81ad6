import pytest

from encutil.utils import dataModels
from encutil.utils.dataModels import KdfParams


class ScriptedPrompt:
    """Answers prompts from fixed lists and records how often it was asked."""

    def __init__(self, passwords=(), answers=()):
        self.passwords = list(passwords)
        self.answers = list(answers)
        self.asked = 0

    def password(self):
        self.asked += 1
        return self.passwords.pop(0)

    def password_and_verify(self):
        return self.password()

    def yes_no(self, question):
        return self.answers.pop(0)


@pytest.fixture(autouse=True)
def cheap_argon2(monkeypatch):
    monkeypatch.setattr(dataModels, "DEFAULT_T_COST", 1)
    monkeypatch.setattr(dataModels, "DEFAULT_M_COST_KiB", 8)
    monkeypatch.setattr(dataModels, "DEFAULT_PARALLELISM", 1)


@pytest.fixture
def fast_params():
    return KdfParams(1, 8, 1)


@pytest.fixture
def scripted_prompt():
    return ScriptedPrompt


@pytest.fixture
def plain_file(tmp_path):
    p = tmp_path / "a.txt"
    p.write_bytes(b"hello")
    return p
