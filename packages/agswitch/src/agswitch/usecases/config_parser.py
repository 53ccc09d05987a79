"""Config parser use case for agswitch."""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

import yaml

from agswitch.domain.exceptions import ConfigError
from agswitch.domain.failover import SyncTimeoutPolicy
from agswitch.domain.replica_group import ReplicaRole
from agswitch.domain.settings import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_SYNC_TIMEOUT_SECONDS,
    OrchestratorSettings,
)

E = TypeVar("E", bound=Enum)


class ConfigParser:
    """Parses agswitch YAML configuration to settings.

    Expected document shape (only target_node is required)::

        target_node: SQL2
        candidate_role: secondary
        benchmark: false
        approved_groups: [AG1, AG2]
        sync:
          timeout_seconds: 300
          poll_interval_seconds: 10
          on_timeout: proceed        # proceed | skip | ask
        gateway:
          url_template: "mssql+pyodbc://user:pass@{node}/master?driver=..."
    """

    def parse(self, yaml_str: str) -> OrchestratorSettings:
        """Parse agswitch YAML config to settings.

        Args:
            yaml_str: YAML string representing agswitch configuration

        Returns:
            OrchestratorSettings domain object

        Raises:
            ConfigError: If YAML is invalid or a field is missing or invalid
        """
        try:
            config = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError("Config must be a dictionary")

        try:
            target_node = config["target_node"]
        except KeyError as e:
            raise ConfigError(f"Missing required field in config: {e}") from e
        if not isinstance(target_node, str):
            raise ConfigError(f"target_node must be a string, got: {target_node!r}")

        sync = self._section(config, "sync")
        gateway = self._section(config, "gateway")

        approved_groups = config.get("approved_groups")
        if approved_groups is not None:
            if not isinstance(approved_groups, list):
                raise ConfigError("approved_groups must be a list of group names")
            approved_groups = tuple(approved_groups)

        url_template = gateway.get("url_template")
        if url_template is not None and not isinstance(url_template, str):
            raise ConfigError("gateway.url_template must be a string")

        benchmark = config.get("benchmark", False)
        if not isinstance(benchmark, bool):
            raise ConfigError(f"benchmark must be true or false, got: {benchmark!r}")

        return OrchestratorSettings(
            target_node=target_node,
            candidate_role=self._enum(
                ReplicaRole, config.get("candidate_role", "secondary"), "candidate_role"
            ),
            sync_timeout_seconds=self._number(
                sync.get("timeout_seconds", DEFAULT_SYNC_TIMEOUT_SECONDS),
                "sync.timeout_seconds",
            ),
            poll_interval_seconds=self._number(
                sync.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS),
                "sync.poll_interval_seconds",
            ),
            on_sync_timeout=self._enum(
                SyncTimeoutPolicy, sync.get("on_timeout", "proceed"), "sync.on_timeout"
            ),
            benchmark=benchmark,
            approved_groups=approved_groups,
            gateway_url_template=url_template,
        )

    @staticmethod
    def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
        section = config.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"{name} must be a mapping")
        return section

    @staticmethod
    def _number(value: Any, field_name: str) -> float:
        # bool is an int subclass; "true" is not a timeout.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{field_name} must be a number, got: {value!r}")
        return float(value)

    @staticmethod
    def _enum(enum_cls: type[E], value: Any, field_name: str) -> E:
        try:
            return enum_cls(str(value).lower())
        except ValueError as e:
            choices = ", ".join(member.value for member in enum_cls)
            raise ConfigError(
                f"{field_name} must be one of: {choices}; got: {value!r}"
            ) from e
