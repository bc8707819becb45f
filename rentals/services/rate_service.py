"""
Daily rate services: single and bulk edits, file import.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from django.db import transaction

from rentals.exceptions import InvalidRangeError

from .pricing_service import to_utc_date

logger = logging.getLogger(__name__)


def upsert_daily_rate(apartment, day, price=None, is_blocked=False, min_stay=None, notes=''):
    """
    Create or replace the daily rate of one day.

    Returns:
        (DailyRate, created)
    """
    from rentals.models import DailyRate

    return DailyRate.objects.update_or_create(
        apartment=apartment,
        date=to_utc_date(day),
        defaults={
            'price': price,
            'is_blocked': bool(is_blocked),
            'min_stay': min_stay,
            'notes': notes or '',
        }
    )


def delete_daily_rate(apartment, day):
    """Remove the daily rate of one day. Returns True if a row was deleted."""
    from rentals.models import DailyRate

    deleted, _ = DailyRate.objects.filter(apartment=apartment, date=to_utc_date(day)).delete()
    return deleted > 0


def rates_in_range(apartment, start, end):
    """Daily rates of an apartment between start and end (inclusive), by date."""
    from rentals.models import DailyRate

    return DailyRate.objects.filter(
        apartment=apartment,
        date__gte=to_utc_date(start),
        date__lte=to_utc_date(end)
    ).order_by('date')


@transaction.atomic
def bulk_update_rates(apartment, start, end, price=None, is_blocked=None, min_stay=None,
                      notes=None, reset_prices=False, reset_min_stay=False):
    """
    Apply the same change to every day of an inclusive date range.

    reset_prices:   clear the price of existing rows only
    reset_min_stay: set min_stay of existing rows that have one to
                    `min_stay` (default 1)
    otherwise:      upsert every day, touching only the fields passed

    Returns:
        Number of rows created or modified
    """
    from rentals.models import DailyRate

    start = to_utc_date(start)
    end = to_utc_date(end)
    if end < start:
        raise InvalidRangeError(f"End date ({end.isoformat()}) is before start date ({start.isoformat()})")

    existing = rates_in_range(apartment, start, end)

    if reset_prices:
        return existing.filter(price__isnull=False).update(price=None)

    if reset_min_stay:
        return existing.filter(min_stay__isnull=False).update(min_stay=min_stay or 1)

    fields = {}
    if price is not None:
        fields['price'] = price
    if is_blocked is not None:
        fields['is_blocked'] = bool(is_blocked)
    if min_stay is not None:
        fields['min_stay'] = min_stay
    if notes is not None:
        fields['notes'] = notes

    count = 0
    day = start
    while day <= end:
        DailyRate.objects.update_or_create(apartment=apartment, date=day, defaults=fields)
        count += 1
        day += timedelta(days=1)

    logger.info("Bulk updated %d daily rates for %s (%s → %s)", count, apartment.code, start, end)
    return count


class DailyRateImportService:
    """
    Import daily rates from an Excel/CSV file.

    Expected columns (case-insensitive, aliases accepted):
        date | price | is_blocked | min_stay | notes

    Usage:
        service = DailyRateImportService()
        result = service.import_file(apartment, 'rates_2026.xlsx')
        print(result['rows_created'], result['errors'])
    """

    COLUMN_MAPPING = {
        'date': ['date', 'day', 'data', 'night'],
        'price': ['price', 'rate', 'nightly price', 'prezzo', 'amount'],
        'is_blocked': ['is_blocked', 'blocked', 'closed', 'bloccato'],
        'min_stay': ['min_stay', 'min stay', 'minimum stay', 'minstay', 'soggiorno minimo'],
        'notes': ['notes', 'note', 'comment'],
    }

    REQUIRED_COLUMNS = {'date'}

    TRUE_VALUES = {'1', 'true', 'yes', 'y', 'x', 'si', 'sì', 'blocked'}

    def __init__(self):
        self.errors: List[Dict] = []
        self.stats = {
            'rows_total': 0,
            'rows_created': 0,
            'rows_updated': 0,
            'rows_skipped': 0,
        }

    def import_file(self, apartment, file_path, validate_only: bool = False) -> Dict:
        """
        Import daily rates for an apartment.

        Args:
            apartment: Apartment to import to
            file_path: Path to .xlsx/.xls/.csv file
            validate_only: parse every row but write nothing

        Returns:
            Dict with import results
        """
        file_path = Path(file_path)

        df = self._read_file(file_path)
        if df is None or df.empty:
            if not self.errors:
                self.errors.append({'row': 0, 'message': 'File is empty or could not be read'})
            return self._build_result(file_path, validate_only)

        df = self._map_columns(df)
        missing = self.REQUIRED_COLUMNS - set(df.columns)
        if missing:
            self.errors.append({
                'row': 0,
                'message': 'Missing required columns: ' + ', '.join(sorted(missing))
            })
            return self._build_result(file_path, validate_only)

        self.stats['rows_total'] = len(df)

        with transaction.atomic():
            for index, row in df.iterrows():
                # header is row 1
                self._process_row(apartment, row, index + 2, validate_only)

        logger.info(
            "Imported daily rates for %s from %s: %d created, %d updated, %d skipped",
            apartment.code, file_path.name,
            self.stats['rows_created'], self.stats['rows_updated'], self.stats['rows_skipped']
        )
        return self._build_result(file_path, validate_only)

    def _read_file(self, file_path: Path) -> Optional[pd.DataFrame]:
        """Read Excel or CSV file into DataFrame."""
        suffix = file_path.suffix.lower()

        try:
            if suffix in ['.xlsx', '.xls']:
                return pd.read_excel(file_path)
            if suffix == '.csv':
                for encoding in ['utf-8', 'latin1']:
                    try:
                        return pd.read_csv(file_path, encoding=encoding, index_col=False)
                    except UnicodeDecodeError:
                        continue
                return None
        except (OSError, ValueError) as e:
            self.errors.append({'row': 0, 'message': f'Error reading file: {e}'})
            return None

        self.errors.append({'row': 0, 'message': f'Unsupported file format: {suffix}'})
        return None

    def _map_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Map source columns to standard column names."""
        column_map = {}
        df.columns = [str(col).strip() for col in df.columns]

        for standard_name, possible_names in self.COLUMN_MAPPING.items():
            for col in df.columns:
                if col.lower() in possible_names:
                    column_map[col] = standard_name
                    break

        return df.rename(columns=column_map)

    def _process_row(self, apartment, row: pd.Series, row_num: int, validate_only: bool) -> None:
        from rentals.models import DailyRate

        day = self._parse_date(row.get('date'))
        if day is None:
            self.errors.append({'row': row_num, 'message': f"Invalid date: {row.get('date')}"})
            self.stats['rows_skipped'] += 1
            return

        try:
            price = self._parse_decimal(row.get('price'))
        except InvalidOperation:
            self.errors.append({'row': row_num, 'message': f"Invalid price: {row.get('price')}"})
            self.stats['rows_skipped'] += 1
            return

        try:
            min_stay = self._parse_int(row.get('min_stay'))
            if min_stay is not None and min_stay < 1:
                raise ValueError(min_stay)
        except ValueError:
            self.errors.append({'row': row_num, 'message': f"Invalid minimum stay: {row.get('min_stay')}"})
            self.stats['rows_skipped'] += 1
            return

        fields = {
            'price': price,
            'is_blocked': self._parse_bool(row.get('is_blocked')),
            'min_stay': min_stay,
            'notes': self._parse_text(row.get('notes')),
        }

        if validate_only:
            exists = DailyRate.objects.filter(apartment=apartment, date=day).exists()
            self.stats['rows_updated' if exists else 'rows_created'] += 1
            return

        _, created = DailyRate.objects.update_or_create(apartment=apartment, date=day, defaults=fields)
        self.stats['rows_created' if created else 'rows_updated'] += 1

    def _parse_date(self, value) -> Optional[date]:
        if value is None or pd.isna(value):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        value = str(value).strip()
        for fmt in ['%Y-%m-%d', '%d/%m/%Y', '%d-%m-%Y', '%d.%m.%Y']:
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        return None

    def _parse_decimal(self, value) -> Optional[Decimal]:
        """Empty cells mean no price; anything else must be a number."""
        if value is None or pd.isna(value):
            return None
        value_str = str(value).strip().replace('€', '').replace(',', '.')
        if not value_str or value_str == '-':
            return None
        return Decimal(value_str).quantize(Decimal('0.01'))

    def _parse_int(self, value) -> Optional[int]:
        """Empty cells mean no value; anything else must be a whole number."""
        if value is None or pd.isna(value):
            return None
        value_str = str(value).strip()
        if not value_str:
            return None
        number = float(value_str)
        if not number.is_integer():
            raise ValueError(f"Not a whole number: {value_str}")
        return int(number)

    def _parse_bool(self, value) -> bool:
        if value is None or pd.isna(value):
            return False
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in self.TRUE_VALUES

    def _parse_text(self, value) -> str:
        if value is None or pd.isna(value):
            return ''
        return str(value).strip()

    def _build_result(self, file_path: Path, validate_only: bool) -> Dict:
        rows_ok = self.stats['rows_created'] + self.stats['rows_updated']
        return {
            'success': rows_ok > 0 or (self.stats['rows_total'] > 0 and not self.errors),
            'filename': file_path.name,
            'validate_only': validate_only,
            **self.stats,
            'errors': self.errors[:100],
        }
