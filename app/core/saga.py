from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from app.utils.logger import logger

StepResult = Union[Any, Awaitable[Any]]


@dataclass
class SagaStep:
    """
    Passo de uma saga: `action(context)` e, opcionalmente, a compensação que
    desfaz o passo `compensation(context, result)`.

    Ambos podem ser funções comuns ou coroutines.
    """

    name: str
    action: Callable[[Dict[str, Any]], StepResult]
    compensation: Optional[Callable[[Dict[str, Any], Any], StepResult]] = None
    compensation_retries: int = 3


@dataclass
class FailedCompensation:
    step: str
    error: str
    result: Any = None


class SagaError(Exception):
    def __init__(self, step: str, original: BaseException, failed_compensations: List[FailedCompensation]):
        super().__init__(f"Saga falhou no passo '{step}': {original}")
        self.step = step
        self.original = original
        self.failed_compensations = failed_compensations


async def _call(fn: Callable[..., StepResult], *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class Saga:
    """
    Pipeline de passos com ações compensatórias.

    `run()` executa os passos em ordem, guardando o resultado de cada um em
    `context[step.name]`. Se um passo falha, as compensações dos passos já
    concluídos rodam na ordem inversa (cada uma com novas tentativas). As
    compensações que falharem são registradas em log como recurso órfão e
    expostas em `SagaError.failed_compensations`.
    """

    name: str
    steps: List[SagaStep] = field(default_factory=list)

    async def run(self, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        context = {} if context is None else context
        completed: List[SagaStep] = []

        for step in self.steps:
            try:
                context[step.name] = await _call(step.action, context)
            except Exception as e:
                logger.error("[SAGA] %s: falha no passo '%s': %s", self.name, step.name, e)
                failed = await self._compensate(completed, context)
                raise SagaError(step.name, e, failed) from e
            completed.append(step)
            logger.info("[SAGA] %s: passo '%s' concluído", self.name, step.name)

        return context

    async def _compensate(self, completed: List[SagaStep], context: Dict[str, Any]) -> List[FailedCompensation]:
        failed: List[FailedCompensation] = []
        for step in reversed(completed):
            if step.compensation is None:
                continue
            result = context.get(step.name)
            last_error: Optional[Exception] = None
            for attempt in range(1, max(step.compensation_retries, 1) + 1):
                try:
                    await _call(step.compensation, context, result)
                    logger.info("[SAGA] %s: compensação de '%s' executada", self.name, step.name)
                    last_error = None
                    break
                except Exception as e:
                    last_error = e
                    logger.warning(
                        "[SAGA] %s: compensação de '%s' falhou (tentativa %s/%s): %s",
                        self.name, step.name, attempt, step.compensation_retries, e,
                    )
            if last_error is not None:
                logger.error(
                    "[SAGA] %s: RECURSO ÓRFÃO - compensação de '%s' não concluída: %s",
                    self.name, step.name, last_error,
                )
                failed.append(FailedCompensation(step=step.name, error=str(last_error), result=result))
        return failed
