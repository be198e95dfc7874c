"""
Template Registry

Versioned, append-only catalog of implementation templates (KPI token
kinds, oracle kinds). Records live in a list indexed by template id:
ids are dense and never reused, and an upgrade only swaps the
implementation address, version and specification of one record.

Instances are clones of a template implementation deployed at an
address derived from the owning factory, the implementation and a salt
built from (creator, template id, description, init data). The same
`predict_clone_address` call backs both prediction and instantiation.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Union

from kpitokens.chain import Contract
from kpitokens.core.addresses import (
    instance_salt,
    is_zero_address,
    predict_clone_address,
    to_address,
)
from kpitokens.core.errors import (
    InvalidSpecification,
    NonIncreasingVersion,
    Unauthorized,
    UnknownTemplate,
    ZeroAddressTemplate,
)

logger = logging.getLogger(__name__)


class VersionBump(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


@dataclass(frozen=True, order=True)
class Version:
    major: int = 1
    minor: int = 0
    patch: int = 0

    def bump(self, kind: VersionBump) -> "Version":
        if kind == VersionBump.MAJOR:
            return Version(self.major + 1, 0, 0)
        if kind == VersionBump.MINOR:
            return Version(self.major, self.minor + 1, 0)
        return Version(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass
class Template:
    id: int
    address: str
    version: Version
    specification: str
    exists: bool = True


class TemplateRegistry(Contract):
    def __init__(self, owner: str, factory: str):
        self.owner = to_address(owner)
        self.factory = to_address(factory)
        self._templates: List[Template] = []

    # -------------------------------------------------
    # ACCESS
    # -------------------------------------------------
    def _only_owner(self, caller: str) -> None:
        if to_address(caller) != self.owner:
            raise Unauthorized(f"{caller} is not the registry owner")

    def _stored(self, template_id: int) -> Template:
        if not self.exists(template_id):
            raise UnknownTemplate(f"No template with id {template_id}")
        return self._templates[template_id]

    # -------------------------------------------------
    # CATALOG MUTATIONS
    # -------------------------------------------------
    def add_template(self, caller: str, implementation: str, specification: str) -> int:
        with self.chain.transaction():
            self._only_owner(caller)
            if is_zero_address(implementation):
                raise ZeroAddressTemplate("Template implementation cannot be the zero address")
            if not specification:
                raise InvalidSpecification("Template specification cannot be empty")

            template_id = len(self._templates)
            self._templates.append(
                Template(
                    id=template_id,
                    address=to_address(implementation),
                    version=Version(),
                    specification=specification,
                )
            )
            self._emit(
                "TemplateAdded",
                id=template_id,
                template=to_address(implementation),
                specification=specification,
            )

        logger.info("Template %s added at %s", template_id, implementation)
        return template_id

    def upgrade_template(
        self,
        caller: str,
        template_id: int,
        new_implementation: str,
        version_bump: Union[VersionBump, str, Version],
        new_specification: str,
    ) -> Template:
        """
        Point an existing template at a new implementation.

        `version_bump` is a bump kind ("major" | "minor" | "patch") or an
        explicit target Version; the resulting version must be strictly
        greater than the current one.
        """
        with self.chain.transaction():
            self._only_owner(caller)
            stored = self._stored(template_id)

            if is_zero_address(new_implementation):
                raise ZeroAddressTemplate("Template implementation cannot be the zero address")
            if not new_specification:
                raise InvalidSpecification("Template specification cannot be empty")
            if to_address(new_implementation) == stored.address:
                raise NonIncreasingVersion(
                    f"Template {template_id} already points at {stored.address}"
                )

            new_version = self._next_version(stored.version, version_bump)

            stored.address = to_address(new_implementation)
            stored.version = new_version
            stored.specification = new_specification
            self._emit(
                "TemplateUpgraded",
                id=template_id,
                template=stored.address,
                version=str(new_version),
                specification=new_specification,
            )

        logger.info("Template %s upgraded to %s (v%s)", template_id, new_implementation, new_version)
        return replace(stored)

    @staticmethod
    def _next_version(current: Version, version_bump) -> Version:
        if isinstance(version_bump, Version):
            target = version_bump
        else:
            try:
                target = current.bump(VersionBump(version_bump))
            except ValueError as exc:
                raise NonIncreasingVersion(f"Unknown version bump {version_bump!r}") from exc

        if target <= current:
            raise NonIncreasingVersion(f"Version {target} does not increase {current}")
        return target

    # -------------------------------------------------
    # VIEWS
    # -------------------------------------------------
    def exists(self, template_id: int) -> bool:
        return (
            isinstance(template_id, int)
            and 0 <= template_id < len(self._templates)
            and self._templates[template_id].exists
        )

    def template(self, template_id: int) -> Template:
        return replace(self._stored(template_id))

    def templates(self) -> List[Template]:
        return [replace(template) for template in self._templates]

    def templates_amount(self) -> int:
        return len(self._templates)

    # -------------------------------------------------
    # INSTANCES
    # -------------------------------------------------
    def predict_instance_address(
        self,
        creator: str,
        template_id: int,
        description: str,
        init_data: bytes,
    ) -> str:
        template = self._stored(template_id)
        salt = instance_salt(creator, template_id, description, init_data)
        return predict_clone_address(self.factory, template.address, salt)

    def instantiate(
        self,
        caller: str,
        creator: str,
        template_id: int,
        description: str,
        init_data: bytes,
    ) -> Contract:
        """Deploy a fresh clone of the template implementation (factory only)."""
        with self.chain.transaction():
            if to_address(caller) != self.factory:
                raise Unauthorized(f"{caller} is not the factory")

            address = self.predict_instance_address(creator, template_id, description, init_data)
            implementation = self._contract(self._stored(template_id).address)
            instance = self.chain.deploy_at(address, type(implementation)())

        logger.debug("Template %s instantiated at %s", template_id, address)
        return instance
