from typing import Annotated

from fastapi import Depends, Request

from .gateway import LocationGateway


def get_gateway(request: Request) -> LocationGateway:
    gateway: LocationGateway = request.app.state.gateway
    return gateway


Gateway = Annotated[LocationGateway, Depends(get_gateway)]
