# services/job_registry.py
"""
Job type registry.

Maps the job identifier carried in a payload to a factory that builds the
job instance. Applications register their jobs explicitly at cold start,
either with the @registry.job decorator or through a module listed in
JOB_MODULES that exposes register(registry). Dependencies a job needs are
handed to it by that factory, never looked up at call time.
"""

import importlib
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Type

from core.exceptions import DeserializationError
from core.logger import logger

JobFactory = Callable[[Dict[str, Any]], "Job"]


class Job:
    """
    Base class for queued jobs.

    Subclasses implement handle(). Raising from handle() marks the message
    as failed; returning normally marks it as succeeded.
    """

    job_name: str = ""

    def handle(self, context) -> None:
        raise NotImplementedError


class JobRegistry:
    """Registered job factories keyed by job name"""

    def __init__(self):
        self._factories: Dict[str, JobFactory] = {}
        self._loaded_modules: Set[str] = set()

    def register(self, name: str, factory: JobFactory) -> None:
        if not name:
            raise ValueError("Job name must be a non-empty string")
        if name in self._factories:
            raise ValueError(f"Job {name!r} is already registered")
        self._factories[name] = factory
        logger.debug("Registered job %s", name)

    def job(self, name: Optional[str] = None) -> Callable[[Type[Job]], Type[Job]]:
        """
        Class decorator. The payload data is passed to the constructor as
        keyword arguments.
        """
        def decorator(cls: Type[Job]) -> Type[Job]:
            job_name = name or cls.job_name or cls.__name__
            cls.job_name = job_name
            self.register(job_name, lambda data: cls(**data))
            return cls

        return decorator

    def resolve(self, name: str) -> JobFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise DeserializationError(f"Unknown job type: {name!r}") from None

    def load_modules(self, module_paths: Iterable[str]) -> None:
        """
        Import each module and let it register its jobs.

        Modules already loaded into this registry are skipped, so a cold
        start that failed halfway can be retried on the next invocation.
        A module whose register() raises leaves none of its jobs behind.
        """
        for path in module_paths:
            if path in self._loaded_modules:
                continue
            module = importlib.import_module(path)
            register = getattr(module, "register", None)
            if not callable(register):
                raise ValueError(f"Job module {path!r} has no register(registry) function")

            before = set(self._factories)
            try:
                register(self)
            except Exception:
                for name in set(self._factories) - before:
                    del self._factories[name]
                raise
            self._loaded_modules.add(path)
            logger.info("Loaded job module %s", path)

    @property
    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)


job_registry = JobRegistry()
