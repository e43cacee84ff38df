import base64
import os
import unittest
from datetime import date

from reservation_calendar.app import app, init_board, BOARD_KEY, PENDING_KEY
from reservation_calendar.booking import availability
from reservation_calendar.booking.slot import DayStatus


VALID_FIELDS = {
    'name': 'Hanako Yamada',
    'email': 'hanako@example.com',
    'phone': '+1 650-253-0000',
}


class AppTest(unittest.TestCase):
    def setUp(self):
        app.config['TESTING'] = True
        app.config['TODAY'] = date(2025, 4, 10)
        app.config['RESERVATION_LOCALE'] = 'ja'
        init_board(app)
        self.client = app.test_client()

    def status_of(self, day):
        return availability.lookup(app.extensions[BOARD_KEY].slots, day)

    def pending(self, client=None):
        with (client or self.client).session_transaction() as sess:
            return sess.get(PENDING_KEY)

    def select(self, day, client=None, **kwargs):
        return (client or self.client).post(f'/calendar/select/{day}', data={'view': 'month'}, **kwargs)

    def test_index_redirects(self):
        with self.client.get('/') as response:
            self.assertEqual(response.status_code, 302)
            self.assertTrue(response.headers['Location'].endswith('/calendar'))

    def test_calendar(self):
        with self.client.get('/calendar') as response:
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.content_type, 'text/html; charset=utf-8')
            body = response.get_data(as_text=True)
            self.assertIn('「予約日時」の選択', body)
            self.assertIn('data-date="2025-04-15" data-status="available"', body)
            self.assertIn('data-date="2025-04-06" data-status="unavailable"', body)
            self.assertIn('data-date="2025-04-09" data-status="unavailable"', body)
            self.assertIn('action="/calendar/select/2025-04-15"', body)
            self.assertNotIn('action="/calendar/select/2025-04-06"', body)
            self.assertNotIn('reservation-modal', body)

    def test_week_view(self):
        response = self.client.get('/calendar?view=week&date=2025-04-15')
        body = response.get_data(as_text=True)
        self.assertEqual(body.count('data-date='), 7)
        self.assertIn('data-date="2025-04-13"', body)
        self.assertIn('data-date="2025-04-19"', body)

    def test_english_captions(self):
        response = self.client.get('/calendar?lang=en')
        self.assertIn('Choose a reservation date', response.get_data(as_text=True))

    def test_other_month_is_unavailable(self):
        response = self.client.get('/calendar?date=2025-05-10')
        body = response.get_data(as_text=True)
        self.assertIn('data-date="2025-05-12" data-status="unavailable"', body)

    def test_selecting_unavailable_day(self):
        response = self.select('2025-04-06')
        self.assertEqual(response.status_code, 302)
        self.assertIsNone(self.pending())
        response = self.client.get(response.headers['Location'])
        self.assertNotIn('reservation-modal', response.get_data(as_text=True))

    def test_selecting_available_day_shows_form(self):
        response = self.select('2025-04-15', follow_redirects=True)
        self.assertEqual(response.status_code, 200)
        body = response.get_data(as_text=True)
        self.assertIn('id="reservation-modal"', body)
        self.assertIn('2025年04月15日 (火)', body)
        self.assertEqual(self.pending()['date'], '2025-04-15')

    def test_submit_reservation(self):
        self.select('2025-04-15')
        response = self.client.post('/reservations', data=VALID_FIELDS, follow_redirects=True)
        self.assertEqual(response.status_code, 200)
        body = response.get_data(as_text=True)
        self.assertIn('予約が完了しました！', body)
        self.assertIn('data-date="2025-04-15" data-status="unavailable"', body)
        self.assertNotIn('reservation-modal', body)
        self.assertEqual(self.status_of(date(2025, 4, 15)), DayStatus.UNAVAILABLE)
        self.assertIsNone(self.pending())

        # Acknowledgment only shows once
        response = self.client.get('/calendar')
        self.assertNotIn('予約が完了しました！', response.get_data(as_text=True))

    def test_submit_with_empty_field(self):
        self.select('2025-04-15')
        response = self.client.post('/reservations', data={**VALID_FIELDS, 'name': ''})
        self.assertEqual(response.status_code, 422)
        body = response.get_data(as_text=True)
        self.assertIn('お名前を入力してください。', body)
        self.assertIn('value="hanako@example.com"', body)
        self.assertEqual(self.pending()['date'], '2025-04-15')
        self.assertEqual(self.status_of(date(2025, 4, 15)), DayStatus.AVAILABLE)

    def test_validation_messages_follow_locale(self):
        self.select('2025-04-15')
        response = self.client.post('/reservations', data={**VALID_FIELDS, 'name': '', 'lang': 'en'})
        self.assertEqual(response.status_code, 422)
        self.assertIn('Name is required.', response.get_data(as_text=True))

    def test_entered_values_survive_page_reload(self):
        self.select('2025-04-15')
        self.client.post('/reservations', data={**VALID_FIELDS, 'phone': ''})
        body = self.client.get('/calendar').get_data(as_text=True)
        self.assertIn('id="reservation-modal"', body)
        self.assertIn('value="Hanako Yamada"', body)

    def test_submit_without_open_form(self):
        response = self.client.post('/reservations', data=VALID_FIELDS, follow_redirects=True)
        self.assertIn('予約フォームは閉じられています', response.get_data(as_text=True))
        self.assertEqual(self.status_of(date(2025, 4, 15)), DayStatus.AVAILABLE)

    def test_cancel(self):
        self.select('2025-04-15')
        response = self.client.post('/reservations/cancel', data={'view': 'month'})
        self.assertEqual(response.status_code, 302)
        self.assertIsNone(self.pending())
        self.assertEqual(self.status_of(date(2025, 4, 15)), DayStatus.AVAILABLE)

    def test_visitors_have_separate_forms(self):
        alice = app.test_client()
        bob = app.test_client()
        self.select('2025-04-15', client=alice)
        alice.post('/reservations', data={**VALID_FIELDS, 'phone': ''})

        body = bob.get('/calendar').get_data(as_text=True)
        self.assertNotIn('reservation-modal', body)
        self.assertNotIn('Hanako Yamada', body)

        response = bob.post('/reservations', data={**VALID_FIELDS, 'name': 'Taro'}, follow_redirects=True)
        self.assertIn('予約フォームは閉じられています', response.get_data(as_text=True))
        self.assertEqual(self.status_of(date(2025, 4, 15)), DayStatus.AVAILABLE)
        self.assertEqual(self.pending(alice)['date'], '2025-04-15')

    def test_reservations_are_shared_between_visitors(self):
        alice = app.test_client()
        bob = app.test_client()
        self.select('2025-04-15', client=alice)
        self.select('2025-04-15', client=bob)
        alice.post('/reservations', data=VALID_FIELDS)

        # Bob's form closes once the day is taken
        body = bob.get('/calendar').get_data(as_text=True)
        self.assertNotIn('reservation-modal', body)
        self.assertIn('data-date="2025-04-15" data-status="unavailable"', body)
        self.assertIsNone(self.pending(bob))

    def test_passed_days_close_as_today_moves(self):
        self.select('2025-04-15')
        self.client.post('/reservations', data=VALID_FIELDS)
        app.config['TODAY'] = date(2025, 4, 12)

        response = self.select('2025-04-11')
        self.assertEqual(response.status_code, 302)
        self.assertIsNone(self.pending())
        self.assertEqual(self.status_of(date(2025, 4, 11)), DayStatus.UNAVAILABLE)
        # Reservation kept within the month
        self.assertEqual(self.status_of(date(2025, 4, 15)), DayStatus.UNAVAILABLE)
        self.assertEqual(self.status_of(date(2025, 4, 16)), DayStatus.AVAILABLE)

    def test_month_rollover_generates_new_month(self):
        app.config['TODAY'] = date(2025, 5, 2)
        slots = self.client.get('/api/slots').get_json()
        self.assertEqual(len(slots), 31)
        self.assertIn({'date': '2025-05-02', 'status': 'available'}, slots)
        self.assertIn({'date': '2025-05-01', 'status': 'unavailable'}, slots)

    def test_slots_api(self):
        self.select('2025-04-15')
        self.client.post('/reservations', data=VALID_FIELDS)
        with self.client.get('/api/slots') as response:
            self.assertEqual(response.status_code, 200)
            slots = response.get_json()
            self.assertEqual(len(slots), 30)
            self.assertIn({'date': '2025-04-15', 'status': 'unavailable'}, slots)
            self.assertIn({'date': '2025-04-16', 'status': 'available'}, slots)

    def test_invalid_date(self):
        response = self.client.post('/calendar/select/2025-13-01', follow_redirects=True)
        self.assertEqual(response.status_code, 200)
        self.assertIn('日付が正しくありません。', response.get_data(as_text=True))
        self.assertIsNone(self.pending())

    def test_invalid_anchor_date(self):
        response = self.client.get('/calendar?date=garbage&lang=en')
        self.assertEqual(response.status_code, 302)
        response = self.client.get(response.headers['Location'])
        self.assertIn('Invalid date.', response.get_data(as_text=True))

    def test_value_errors_are_not_handled_globally(self):
        self.assertNotIn(ValueError, app.error_handler_spec[None].get(None, {}))

    def test_page_not_found(self):
        response = self.client.get('/notapage')
        self.assertEqual(response.status_code, 302)
        response = self.client.get(response.headers['Location'])
        self.assertIn('ページが見つかりません。', response.get_data(as_text=True))

    def test_reset_requires_login(self):
        response = self.client.post('/admin/availability/reset')
        self.assertEqual(response.status_code, 401)

    @unittest.skipIf(os.getenv('HASH_ADMIN'), 'admin password set from environment')
    def test_reset(self):
        self.select('2025-04-15')
        self.client.post('/reservations', data=VALID_FIELDS)
        credentials = base64.b64encode(b'admin:secret').decode()
        response = self.client.post('/admin/availability/reset',
                                    headers={'Authorization': f'Basic {credentials}'})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.status_of(date(2025, 4, 15)), DayStatus.AVAILABLE)


if __name__ == '__main__':
    unittest.main()
