from dataclasses import dataclass

from sandlot_scoring.domain.errors import ScoringError


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E


type Result[T, E] = Ok[T] | Err[E]

# Every public scoring command resolves to one of these.
type ScoringResult[T] = Result[T, ScoringError]
