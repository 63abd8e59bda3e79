"""
Service context for log lines.

Identifies which process wrote a line when request handlers and the
expiry reaper run as separate instances against the same stores.
"""

from functools import lru_cache
import os


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'seat-inventory')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # HOSTNAME is the container id under Docker/Kubernetes
    instance = os.getenv('HOSTNAME', '')[:12] or str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance}'
