from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status

from api.dependencies import get_conversion_manager
from api.schemas import CurrencyConversionEntity, CurrencyConversionsResponse, UsdConversionResponse
from application.services import CurrencyConversionManager
from application.services.conversion_math import to_plain_string

router = APIRouter(prefix='/v1/payments', tags=['payments'])


@router.get(
	'/conversions',
	response_model=CurrencyConversionsResponse,
	status_code=status.HTTP_200_OK,
	summary='Get currency conversions for every base currency',
)
async def get_conversions(
	manager: Annotated[CurrencyConversionManager, Depends(get_conversion_manager)],
) -> CurrencyConversionsResponse:
	snapshot = manager.get_currency_conversions()
	if snapshot is None:
		raise HTTPException(
			status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
			detail='Currency conversions not yet available',
		)

	return CurrencyConversionsResponse(
		currencies=[
			CurrencyConversionEntity(
				base=table.base,
				conversions={code: to_plain_string(value) for code, value in table.conversions.items()},
			)
			for table in snapshot.currencies
		],
		timestamp=int(snapshot.timestamp.timestamp() * 1000),
	)


@router.get(
	'/conversions/usd/{currency}/{amount}',
	response_model=UsdConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert an amount to US dollars',
)
async def convert_to_usd(
	currency: Annotated[str, Path(min_length=3, max_length=5)],
	amount: Annotated[Decimal, Path(ge=0)],
	manager: Annotated[CurrencyConversionManager, Depends(get_conversion_manager)],
) -> UsdConversionResponse:
	usd_amount = manager.convert_to_usd(amount, currency)
	if usd_amount is None:
		raise HTTPException(
			status_code=status.HTTP_404_NOT_FOUND,
			detail=f'No conversion available for {currency.upper()}',
		)

	return UsdConversionResponse(
		currency=currency.upper(),
		amount=to_plain_string(amount),
		usd_amount=to_plain_string(usd_amount),
	)
