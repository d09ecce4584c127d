import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from raffle import config
from raffle.errors import DeploymentError


@dataclass
class Deployment:
    name: str
    address: str
    abi: List[dict]
    args: List[Any] = field(default_factory=list)
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None

    def to_json(self):
        data = asdict(self)
        return {
            "address": data["address"],
            "abi": data["abi"],
            "args": data["args"],
            "transactionHash": data["transaction_hash"],
            "blockNumber": data["block_number"],
        }

    @classmethod
    def from_json(cls, name, data):
        return cls(
            name=name,
            address=data["address"],
            abi=data["abi"],
            args=data.get("args", []),
            transaction_hash=data.get("transactionHash"),
            block_number=data.get("blockNumber"),
        )


class Deployments:
    """Deployed contracts of one network.

    With a ``directory`` each deployment is kept in
    ``<directory>/<network>/<Name>.json``, otherwise only in memory (the
    in-process chain is gone when the process exits anyway).
    """

    def __init__(self, network_name, chain_id, directory=None):
        self.network_name = network_name
        self.chain_id = chain_id
        self.path = Path(directory) / network_name if directory else None
        self._deployments = {}
        if self.path and self.path.is_dir():
            self._load()

    def _load(self):
        chain_id_file = self.path / ".chainId"
        if chain_id_file.exists() and int(chain_id_file.read_text().strip()) != int(self.chain_id):
            raise DeploymentError(
                f"{self.path} holds deployments for chain {chain_id_file.read_text().strip()}, not {self.chain_id}"
            )
        for file in sorted(self.path.glob("*.json")):
            with file.open("r", encoding="utf-8") as f:
                self._deployments[file.stem] = Deployment.from_json(file.stem, json.load(f))

    def save(self, deployment):
        self._deployments[deployment.name] = deployment
        if self.path:
            self.path.mkdir(parents=True, exist_ok=True)
            (self.path / ".chainId").write_text(str(self.chain_id))
            with (self.path / f"{deployment.name}.json").open("w", encoding="utf-8") as f:
                json.dump(deployment.to_json(), f, indent=2)
        return deployment

    def get(self, name):
        try:
            return self._deployments[name]
        except KeyError:
            raise DeploymentError(f"No deployment found for: {name} on {self.network_name}") from None

    def get_or_none(self, name):
        return self._deployments.get(name)

    def all(self):
        return dict(self._deployments)

    def __contains__(self, name):
        return name in self._deployments


def load_artifact(name, directory=None):
    """Compiled contract output (``abi`` + ``bytecode``), flat or in the
    ``artifacts/contracts/<Source>.sol/<Name>.json`` layout."""
    root = Path(directory or config.ARTIFACTS_DIR)
    candidates = [root / f"{name}.json"]
    if root.is_dir():
        candidates += sorted(root.rglob(f"{name}.json"))

    for path in candidates:
        if path.is_file():
            with path.open("r", encoding="utf-8") as f:
                artifact = json.load(f)
            if not isinstance(artifact.get("abi"), list) or not artifact.get("bytecode"):
                raise DeploymentError(f"Invalid artifact file {path}: missing abi or bytecode")
            return artifact
    raise DeploymentError(f"Contract artifact not found for {name} in {root}")
