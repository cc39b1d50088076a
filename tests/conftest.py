from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from kymerabot.database import CountersRepository, WarningRepository
from kymerabot.services import AuditLog, ModerationService


class FakeMember:
    def __init__(
        self,
        member_id: int,
        name: str,
        guild=None,
        *,
        position: int = 1,
        bot: bool = False,
        **permissions: bool,
    ):
        self.id = member_id
        self.name = name
        self.display_name = name
        self.mention = f"<@{member_id}>"
        self.bot = bot
        self.guild = guild
        self.top_role = SimpleNamespace(position=position)
        self.guild_permissions = SimpleNamespace(
            kick_members=permissions.get("kick_members", False),
            ban_members=permissions.get("ban_members", False),
            moderate_members=permissions.get("moderate_members", False),
        )
        self.roles: list = []
        self.kick = AsyncMock()
        self.ban = AsyncMock()
        self.timeout = AsyncMock()
        self.add_roles = AsyncMock(side_effect=lambda role, **kw: self.roles.append(role))
        self.remove_roles = AsyncMock(side_effect=lambda role, **kw: self.roles.remove(role))

    def __str__(self) -> str:
        return self.name


class FakeGuild:
    def __init__(self, guild_id: int = 1000, owner_id: int = 1):
        self.id = guild_id
        self.owner_id = owner_id
        self.members: dict[int, FakeMember] = {}
        self.roles: list = []
        self.me: FakeMember | None = None
        self.unban = AsyncMock()

    def add(self, member: FakeMember) -> FakeMember:
        member.guild = self
        self.members[member.id] = member
        return member

    def get_member(self, member_id: int) -> FakeMember | None:
        return self.members.get(member_id)


@pytest.fixture
def guild() -> FakeGuild:
    guild = FakeGuild()
    guild.me = guild.add(
        FakeMember(999, "KymeraBot", position=10, kick_members=True, ban_members=True, moderate_members=True)
    )
    return guild


@pytest.fixture
def moderator(guild: FakeGuild) -> FakeMember:
    return guild.add(FakeMember(10, "Mod", position=5, kick_members=True))


@pytest.fixture
def member(guild: FakeGuild) -> FakeMember:
    return guild.add(FakeMember(20, "Tenno", position=2))


@pytest.fixture
def counters(tmp_path) -> CountersRepository:
    return CountersRepository.in_dir(tmp_path)


@pytest.fixture
def warnings_repo(tmp_path) -> WarningRepository:
    return WarningRepository.in_dir(tmp_path)


@pytest.fixture
def audit_channel() -> SimpleNamespace:
    return SimpleNamespace(send=AsyncMock())


@pytest.fixture
def fake_bot(counters, warnings_repo, audit_channel) -> SimpleNamespace:
    return SimpleNamespace(
        counters=counters,
        warnings=warnings_repo,
        moderation=ModerationService(warnings_repo, counters),
        audit_log=AuditLog(lambda: audit_channel),
    )


def make_ctx(guild: FakeGuild, author: FakeMember, mentions=()) -> SimpleNamespace:
    return SimpleNamespace(
        guild=guild,
        author=author,
        message=SimpleNamespace(mentions=list(mentions)),
        channel=SimpleNamespace(purge=AsyncMock(return_value=[])),
        reply=AsyncMock(),
        send=AsyncMock(),
    )
