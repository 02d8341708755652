"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from callqual.pipeline.lifecycle import CallLifecycleController


def get_controller(request: Request) -> CallLifecycleController:
    """The lifecycle controller created at application startup."""
    return request.app.state.controller


ControllerDep = Annotated[CallLifecycleController, Depends(get_controller)]
