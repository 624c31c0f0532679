from pydantic import BaseModel, Field


class CurrencyConversionEntity(BaseModel):
	base: str = Field(..., description='Base currency code')
	conversions: dict[str, str] = Field(
		..., description='Units of each target currency per 1 unit of base, as plain decimal strings'
	)


class CurrencyConversionsResponse(BaseModel):
	currencies: list[CurrencyConversionEntity] = Field(description='One conversion table per base currency')
	timestamp: int = Field(..., description='When the conversions were published, epoch milliseconds')

	class ConfigDict:
		json_schema_extra = {
			'example': {
				'currencies': [
					{'base': 'MOB', 'conversions': {'USD': '2.35', 'EUR': '1.9337586'}},
				],
				'timestamp': 1730800000000,
			}
		}


class UsdConversionResponse(BaseModel):
	currency: str = Field(..., description='Source currency code')
	amount: str = Field(..., description='Amount requested')
	usd_amount: str = Field(..., description='Equivalent amount in USD, two fractional digits')
