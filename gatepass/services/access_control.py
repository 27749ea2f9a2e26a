# =======================================================================================
# gatepass/services/access_control.py - Core Business Logic
# =======================================================================================
from datetime import date
from typing import Dict, FrozenSet, Iterable
from ..models.enums import DenyReason, Gate, Role
from ..models.schemas import Decision, Restriction, User
from ..utils.exceptions import ConfigurationError

_ALL_GATES: FrozenSet[Gate] = frozenset(Gate)

# Gates each role may pass. Every role must have a row.
ROLE_GATES: Dict[Role, FrozenSet[Gate]] = {
    Role.A: _ALL_GATES,
    Role.X: _ALL_GATES,
    Role.X_TEC: _ALL_GATES,
    Role.B: frozenset({Gate.S1, Gate.S3}),
    Role.C: frozenset({Gate.S1}),
    Role.C_COM: frozenset({Gate.S1}),
    Role.D: frozenset({Gate.S1}),
    Role.E: frozenset({Gate.S1}),
    Role.P: frozenset({Gate.S1, Gate.S2}),
}


def _check_matrix(matrix: Dict[Role, FrozenSet[Gate]]) -> None:
    missing = set(Role) - set(matrix)
    if missing:
        names = ", ".join(sorted(role.value for role in missing))
        raise ConfigurationError(f"Role/gate matrix has no entry for: {names}")


_check_matrix(ROLE_GATES)


class AccessControlService:
    """Decides whether a user may pass a gate. Stateless; no I/O."""

    @staticmethod
    def permitted_gates(role: Role) -> FrozenSet[Gate]:
        return ROLE_GATES[role]

    @staticmethod
    def is_restricted(user: User, restrictions: Iterable[Restriction], as_of: date) -> bool:
        """True when any restriction of the user's group falls on ``as_of``."""
        if user.group_id is None:
            return False
        return any(r.group_id == user.group_id and r.date == as_of for r in restrictions)

    def decide(self, user: User, gate: Gate, as_of: date,
               restrictions: Iterable[Restriction] = ()) -> Decision:
        """
        Evaluate, in order: enabled flag, group restriction on ``as_of``,
        role/gate matrix. The first failing check gives the reason.
        """
        if not user.enabled:
            return Decision.denied(DenyReason.DISABLED)

        if self.is_restricted(user, restrictions, as_of):
            return Decision.denied(DenyReason.RESTRICTED)

        if gate not in self.permitted_gates(user.role):
            return Decision.denied(DenyReason.NOT_PERMITTED_FOR_ROLE)

        return Decision.allowed()


access_control = AccessControlService()
decide = access_control.decide
