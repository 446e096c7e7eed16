from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Google Sheets (service account JSON ca text, ca în Replit/Docker secrets)
    GOOGLE_SHEETS_SPREADSHEET_ID: Optional[str] = None
    GOOGLE_CREDENTIALS: Optional[str] = None
    GOOGLE_SERVICE_ACCOUNT_JSON: Optional[str] = None

    # Tab-uri (titlul worksheet-ului din spreadsheet)
    SHEETS_SOURCING_TAB: str = "Sourcing"
    SHEETS_PURCHASING_TAB: str = "Purchasing"

    # Header-ele coloanelor folosite de reconciliere (aliniat cu foaia existentă)
    SHEETS_COL_IDENTIFIER: str = "ASIN"
    SHEETS_COL_DISPLAY_NAME: str = "Product Name"
    SHEETS_COL_BRAND: str = "Brand"
    SHEETS_COL_COST_PRICE: str = "Cost Price"
    SHEETS_COL_SALE_PRICE: str = "Sale Price"
    SHEETS_COL_NOTES: str = "Notes"
    SHEETS_COL_STATUS: str = "Product Review"
    SHEETS_COL_SOURCING_METHOD: str = "Sourcing Method"
    SHEETS_COL_ESTIMATED_SALES: str = "Estimated Sales"
    SHEETS_COL_PROFIT_MARGIN: str = "Profit Margin"
    SHEETS_COL_ROI: str = "ROI"

    # Refresh periodic (0 = dezactivat)
    SHEETS_REFRESH_INTERVAL_S: float = 30.0

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def google_credentials_json(self) -> Optional[str]:
        raw = (self.GOOGLE_CREDENTIALS or self.GOOGLE_SERVICE_ACCOUNT_JSON or "").strip()
        return raw or None

    @property
    def sheets_configured(self) -> bool:
        return bool(self.google_credentials_json and (self.GOOGLE_SHEETS_SPREADSHEET_ID or "").strip())

settings = Settings()
