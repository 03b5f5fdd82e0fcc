"""Core infrastructure components for HashiCups Provisioner."""

from hashicups_provisioner.core.provider import HashiCupsProvider, PasswordAuth
from hashicups_provisioner.core.state import ResourceInstance, State

__all__ = ["HashiCupsProvider", "PasswordAuth", "ResourceInstance", "State"]
