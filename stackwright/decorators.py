# stackwright/decorators.py
"""Decorators that mark functions for deployment

The decorators only attach metadata; the build strips them from the
deployed copy of the project, so deployed code never imports this
package.

Example:
    from stackwright import endpoint, worker

    @endpoint(url_path="/hello", queues=["emails"])
    def hello(event, secrets, queues):
        queues["emails"].send_message(MessageBody="hi")
        return {"message": "hello"}

    @worker(queue_alias="emails", concurrency=4)
    def send(records, secrets, queues):
        return []
"""

from typing import Callable, Dict, List, Optional

from .constants import Role

METADATA_ATTRIBUTE = "__stackwright__"


def _mark(role: Role, params: Dict) -> Callable[[Callable], Callable]:
    def decorator(func: Callable) -> Callable:
        setattr(func, METADATA_ATTRIBUTE, {'role': role.value, **params})
        return func

    return decorator


def endpoint(url_path: str,
             queues: Optional[List[str]] = None,
             environment: Optional[Dict[str, str]] = None,
             name: Optional[str] = None,
             is_disabled: bool = False) -> Callable[[Callable], Callable]:
    """Deploy a function as an HTTP request handler"""
    return _mark(Role.ENDPOINT, {
        'url_path': url_path,
        'queues': list(queues or []),
        'environment': dict(environment or {}),
        'name': name,
        'is_disabled': is_disabled,
    })


def worker(queue_alias: Optional[str] = None,
           concurrency: int = 1,
           fifo: bool = False,
           environment: Optional[Dict[str, str]] = None,
           name: Optional[str] = None,
           is_disabled: bool = False) -> Callable[[Callable], Callable]:
    """Deploy a function as a consumer of its own queue"""
    return _mark(Role.WORKER, {
        'queue_alias': queue_alias,
        'concurrency': concurrency,
        'fifo': fifo,
        'environment': dict(environment or {}),
        'name': name,
        'is_disabled': is_disabled,
    })


def cron(schedule: str,
         environment: Optional[Dict[str, str]] = None,
         name: Optional[str] = None,
         is_disabled: bool = False) -> Callable[[Callable], Callable]:
    """Deploy a function triggered on a schedule expression"""
    return _mark(Role.CRON, {
        'schedule': schedule,
        'environment': dict(environment or {}),
        'name': name,
        'is_disabled': is_disabled,
    })
