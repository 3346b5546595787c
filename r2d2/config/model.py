from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..constants import (
    AUTH_SERVICE_NICK,
    GITHUB_POLL_INTERVAL,
    IRC_DEFAULT_PORT,
    IRC_DEFAULT_TLS_PORT,
    PAGE_TITLE_POLL_INTERVAL,
    UNTAPPD_POLL_INTERVAL,
)

_CHANNEL_PREFIXES = ("#", "&")
_REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


def normalize_channel(channel: str) -> str:
    """Return ``channel`` with a channel prefix, or an empty string.

    Unlike Twitch, IRC channel names keep their case and their prefix; a bare
    name gets ``#`` prepended.
    """
    stripped = channel.strip()
    if not stripped:
        return ""
    if stripped.startswith(_CHANNEL_PREFIXES):
        return stripped
    return f"#{stripped}"


def is_channel(target: str) -> bool:
    return target.startswith(_CHANNEL_PREFIXES)


class _FrozenModel(BaseModel):
    # Configuration is read once at startup and never mutated afterwards.
    model_config = ConfigDict(frozen=True, extra="ignore")


class IrcConfig(_FrozenModel):
    """IRC session settings.

    Attributes:
        server: ``host`` or ``host:port`` of the IRC server.
        tls: Whether to wrap the connection in TLS.
        nick: Nick used for registration and for the address pattern.
        nickpass: NickServ password; empty disables the identify handshake.
        channel: Default channel, joined at startup.
        channel_pass: Optional key for ``channel``.
        debug: Verbose logging plus a greeting in the channel once joined.
        auth_service: Nick of the authentication service.
    """

    server: str = Field(min_length=1)
    tls: bool = False
    nick: str = Field(min_length=1, max_length=30)
    nickpass: str = ""
    channel: str = Field(min_length=1)
    channel_pass: str = ""
    debug: bool = False
    auth_service: str = AUTH_SERVICE_NICK

    @field_validator("nick")
    @classmethod
    def validate_nick(cls, v: str) -> str:
        v = v.strip()
        if not v or any(ch in v for ch in " ,*?!@:#"):
            raise ValueError("nick must be a single IRC nickname")
        return v

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v: str) -> str:
        normalized = normalize_channel(v)
        if not normalized or " " in normalized:
            raise ValueError("channel must be a single channel name")
        return normalized

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        v = v.strip()
        host, _, port = v.rpartition(":") if ":" in v else (v, "", "")
        if not host or (port and not port.isdigit()):
            raise ValueError("server must be 'host' or 'host:port'")
        return v

    @property
    def host(self) -> str:
        return self.server.rpartition(":")[0] if ":" in self.server else self.server

    @property
    def port(self) -> int:
        if ":" in self.server:
            return int(self.server.rpartition(":")[2])
        return IRC_DEFAULT_TLS_PORT if self.tls else IRC_DEFAULT_PORT


class PublisherChannelMixin(_FrozenModel):
    enabled: bool = False
    channel: str = ""
    channel_pass: str = ""

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v: str) -> str:
        return normalize_channel(v)


class GithubConfig(PublisherChannelMixin):
    """GitHub activity watcher settings."""

    token: str = ""
    repos: tuple[str, ...] = ()
    interval: float = Field(default=GITHUB_POLL_INTERVAL, gt=0)

    @field_validator("repos", mode="before")
    @classmethod
    def validate_repos(cls, v: Any) -> tuple[str, ...]:
        if not isinstance(v, list | tuple):
            raise ValueError("repos must be a list")
        repos = []
        for repo in v:
            if not isinstance(repo, str) or not _REPO_PATTERN.match(repo.strip()):
                raise ValueError(f"invalid repository name: {repo!r} (expected owner/name)")
            repos.append(repo.strip())
        # Dedup while keeping the configured order
        return tuple(dict.fromkeys(repos))

    @model_validator(mode="after")
    def validate_enabled(self) -> GithubConfig:
        if self.enabled and not self.repos:
            raise ValueError("github watcher enabled without repos")
        return self


class UntappdConfig(PublisherChannelMixin):
    """Untappd check-in watcher settings."""

    client_id: str = ""
    client_secret: str = ""
    users: tuple[str, ...] = ()
    interval: float = Field(default=UNTAPPD_POLL_INTERVAL, gt=0)

    @field_validator("users", mode="before")
    @classmethod
    def validate_users(cls, v: Any) -> tuple[str, ...]:
        if not isinstance(v, list | tuple):
            raise ValueError("users must be a list")
        return tuple(dict.fromkeys(u.strip() for u in v if isinstance(u, str) and u.strip()))

    @model_validator(mode="after")
    def validate_enabled(self) -> UntappdConfig:
        if self.enabled and not (self.client_id and self.client_secret):
            raise ValueError("untappd watcher enabled without client_id/client_secret")
        if self.enabled and not self.users:
            raise ValueError("untappd watcher enabled without users")
        return self


class PageTitleConfig(_FrozenModel):
    enabled: bool = True
    interval: float = Field(default=PAGE_TITLE_POLL_INTERVAL, gt=0)


class GeolocationConfig(_FrozenModel):
    url: str = "http://ip-api.com/json/{ip}"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if "{ip}" not in v:
            raise ValueError("geolocation url must contain an {ip} placeholder")
        return v


class BotConfig(_FrozenModel):
    """Complete bot configuration, built once at startup."""

    irc: IrcConfig
    github: GithubConfig = Field(default_factory=GithubConfig)
    untappd: UntappdConfig = Field(default_factory=UntappdConfig)
    pagetitles: PageTitleConfig = Field(default_factory=PageTitleConfig)
    geolocation: GeolocationConfig = Field(default_factory=GeolocationConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BotConfig:
        return cls.model_validate(dict(data))

    def destination_for(self, section: PublisherChannelMixin) -> tuple[str, str]:
        """Channel and key a publisher posts to, defaulting to the IRC channel."""
        if section.channel:
            return section.channel, section.channel_pass
        return self.irc.channel, self.irc.channel_pass
