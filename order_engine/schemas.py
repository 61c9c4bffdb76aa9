from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TradeMetaData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pair: str
    leverage: float
    margin: float
    quantity: float
    order_type: str
    bought_at: str = Field(alias="boughtAt")
    profit_loss: float = Field(default=0, alias="profitLoss")
    profit_loss_percentage: float = Field(default=0, alias="profitLossPercentage")

    @field_validator("order_type")
    def validate_order_type(cls, v):
        if v not in ("market", "limit"):
            raise ValueError("order_type must be 'market' or 'limit'")
        return v

    @field_validator("leverage")
    def validate_leverage(cls, v):
        if v <= 0:
            raise ValueError("Leverage must be positive")
        return int(v) if float(v).is_integer() else v


class TradeOrderRequest(BaseModel):
    meta_data: TradeMetaData
    price: float

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class TradeResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: Any = None
