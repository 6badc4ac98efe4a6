from datetime import date, datetime

import pandas as pd
import pytest

from utils.data_loader import analysis_period_label, load_sales_csv, sales_records_from_orders
from utils.preprocess import clean_order_lines


def make_orders():
	return [
		{'date': datetime(2025, 1, 2, 9, 30), 'status': 'Delivered', 'products': [
			{'productId': 'P1', 'quantity': 2}, {'productId': 'P2', 'quantity': 5}]},
		{'date': datetime(2025, 1, 2, 17, 0), 'status': 'Shipped', 'products': [{'productId': 'P1', 'quantity': 1}]},
		{'date': datetime(2025, 1, 3), 'status': 'Pending', 'products': [{'productId': 'P1', 'quantity': 9}]},
		{'date': datetime(2025, 2, 1), 'status': 'Delivered', 'products': [{'productId': 'P1', 'quantity': 4}]},
		{'date': '2025-01-31', 'status': 'Delivered', 'products': [{'productId': 'P1', 'quantity': 3}]},
	]


def test_load_sales_csv(tmp_path):
	p = tmp_path / "sales.csv"
	pd.DataFrame({
		'Order_Date': ['2025-01-01', '2025-01-01', '2025-01-02'],
		'sku': ['A', 'B', 'A'],
		'qty': [1, 2, 3]
	}).to_csv(p, index=False)
	records = load_sales_csv(str(p), product_id='A')
	assert records == [{'orderDate': '2025-01-01', 'quantity': 1}, {'orderDate': '2025-01-02', 'quantity': 3}]
	assert len(load_sales_csv(str(p))) == 3


def test_clean_order_lines_rejects_bad_dates():
	df = pd.DataFrame({'date': ['2025-01-01', 'not a date'], 'quantity': [1, 2]})
	with pytest.raises(ValueError, match='not a date'):
		clean_order_lines(df)


def test_clean_order_lines_clips_negative_quantities():
	df = pd.DataFrame({'date': ['2025-01-01'], 'units_sold': [-4]})
	assert clean_order_lines(df)['quantity'].tolist() == [0]


def test_sales_records_from_orders_filters_status_window_and_product():
	records = sales_records_from_orders(make_orders(), 'P1', date(2025, 1, 1), date(2025, 1, 31))
	assert records == [
		{'orderDate': '2025-01-02', 'quantity': 2},
		{'orderDate': '2025-01-02', 'quantity': 1},
		{'orderDate': '2025-01-31', 'quantity': 3},
	]


def test_analysis_period_label():
	assert analysis_period_label(date(2025, 1, 1), date(2025, 1, 31)) == '30 days'
	assert analysis_period_label(datetime(2025, 1, 1), datetime(2025, 1, 2, 6)) == '2 days'
