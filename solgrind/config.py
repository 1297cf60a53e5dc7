"""
Network and grind-loop configuration for the solgrind SDK.

Network definitions ship with the package in ``networks.json``. The RPC
endpoint of any network can be redirected with an environment variable
named after it, e.g. ``DEVNET_RPC_URL`` or ``MAINNET_BETA_RPC_URL``.
"""
import importlib.resources
import json
import logging
import os
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Network(str, Enum):
    """The ledger environments a client can target."""
    MAINNET_BETA = "mainnet-beta"
    TESTNET = "testnet"
    DEVNET = "devnet"


NetworkLike = Union[Network, str]

DEFAULT_NETWORK = Network.DEVNET

# Lamports per SOL
NATIVE_DECIMALS = 9


def _network_name(network: NetworkLike) -> str:
    if isinstance(network, Network):
        return network.value
    return str(network)


class NetworkConfig:
    """Access to the bundled network definitions."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions, caching them after the first read.

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("solgrind").joinpath("networks.json")
            cls._networks_cache = json.loads(resource.read_text(encoding="utf-8"))
            logger.debug("Loaded %d network definitions", len(cls._networks_cache))
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: NetworkLike) -> Dict[str, Any]:
        """
        Get the configuration of a single network.

        Args:
            network: Network name or Network member

        Returns:
            Network configuration dictionary

        Raises:
            ValueError: If the network is not defined
        """
        name = _network_name(network)
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{name}'. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, network: NetworkLike, override: Optional[str] = None) -> str:
        """
        Resolve the RPC endpoint of a network.

        Precedence is the explicit override, then ``<NAME>_RPC_URL`` from the
        environment, then the bundled value.
        """
        if override:
            return override
        name = _network_name(network)
        env_var = f"{name.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url
        return cls.get_network(name)["rpc"]

    @classmethod
    def get_token_mint(cls, network: NetworkLike) -> str:
        """Get the USDC mint address for a network."""
        return cls.get_network(network)["usdcMint"]

    @classmethod
    def get_token_decimals(cls, network: NetworkLike) -> int:
        """Get the decimal exponent of the network's token."""
        return int(cls.get_network(network).get("tokenDecimals", 6))

    @classmethod
    def get_commitment(cls, network: NetworkLike) -> str:
        return cls.get_network(network).get("commitment", "confirmed")


class GrindPolicy(BaseModel):
    """Attempt budget and back-off tunables of the grind loop.

    The delays only exist to stay friendly with public RPC rate limits;
    set them to zero when grinding against a local validator.
    """
    max_attempts: int = Field(100, ge=1)
    # Pause after every rejected candidate
    retry_delay: float = Field(0.01, ge=0)
    # Every ``refresh_every`` rejections wait ``refresh_delay`` so the
    # recent blockhash has a chance to roll over
    refresh_every: int = Field(10, ge=1)
    refresh_delay: float = Field(0.5, ge=0)
    # Pause after a transient build failure
    error_delay: float = Field(1.0, ge=0)
    max_transient_errors: int = Field(100, ge=1)

    def delay_after_rejection(self, attempt: int) -> float:
        """
        Total pause after the given (1-based) rejected attempt.

        Args:
            attempt: Number of the attempt whose candidate was rejected

        Returns:
            Delay in seconds
        """
        delay = self.retry_delay
        if attempt % self.refresh_every == 0:
            delay += self.refresh_delay
        return delay


__all__ = [
    "Network",
    "NetworkLike",
    "NetworkConfig",
    "GrindPolicy",
    "DEFAULT_NETWORK",
    "NATIVE_DECIMALS",
]
