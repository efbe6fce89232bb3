# -*- coding: utf-8 -*-

import pytest

from vow.promise import TaskQueue, set_default_scheduler


@pytest.fixture(autouse=True)
def task_queue(request):
    """Install a new, empty TaskQueue as default scheduler.

    Returns:
        TaskQueue: the queue used by all promises created without scheduler.
    """
    queue = TaskQueue()
    set_default_scheduler(queue)
    request.addfinalizer(lambda: set_default_scheduler(None))
    return queue
