from datetime import date
import logging
import os
import secrets
from functools import wraps
from flask import Flask, render_template, request, flash, redirect, g, url_for, jsonify, session
from flask_debugtoolbar import DebugToolbarExtension
from flask_httpauth import HTTPBasicAuth
from werkzeug.security import generate_password_hash, check_password_hash
from reservation_calendar.booking import availability, error_utils, messages
from reservation_calendar.booking import booking_utils as util
from reservation_calendar.booking import calendar as booking_calendar
from reservation_calendar.booking.selection_controller import SelectionController, SlotBoard, log_submission

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

BOARD_KEY = "reservation_slot_board"
# Session key for the visitor's open reservation form: {"date": "YYYY-MM-DD", "fields": {...}}
PENDING_KEY = "pending_reservation"


def create_app(test_config=None):
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY') or secrets.token_hex(32) #256 bit
    app.config['RESERVATION_LOCALE'] = os.environ.get('RESERVATION_LOCALE', messages.DEFAULT_LOCALE)
    app.config['RESERVATION_CLOSED_WEEKDAY'] = os.environ.get('RESERVATION_CLOSED_WEEKDAY', 'sunday')
    app.config['RESERVATION_PHONE_REGION'] = os.environ.get('RESERVATION_PHONE_REGION', 'JP')
    app.config['RESERVATION_CHECK_DELIVERABILITY'] = os.environ.get('RESERVATION_CHECK_DELIVERABILITY', 'false').lower() == 'true'
    # Only set by tests, None means the real current day
    app.config['TODAY'] = None
    if os.environ.get('FLASK_ENV') != 'production':
        app.config["DEBUG_TB_INTERCEPT_REDIRECTS"] = False  # Prevents redirect issues
    if test_config:
        app.config.update(test_config)
    return app


def current_today(app):
    return app.config['TODAY'] or date.today()


def init_board(app):
    """
    Builds the shared slot board for the app's current month. Called once at startup,
    and again whenever the month has to be re-initialized.
    """
    board = SlotBoard(
        today=current_today(app),
        closed_weekday=availability.parse_weekday(app.config['RESERVATION_CLOSED_WEEKDAY']),
    )
    app.extensions[BOARD_KEY] = board
    return board


app = create_app()
# Set to make Flask debug toolbar work
if not os.environ.get('FLASK_ENV') == 'production':
    app.debug = True
init_board(app)
auth = HTTPBasicAuth()

# Must set this in prod
prod_hash = os.getenv('HASH_ADMIN')

if prod_hash:
    users = {
        "admin": generate_password_hash(prod_hash)
    }
else: # For dev
    users = {
        "admin": generate_password_hash('secret')
    }

@auth.verify_password
def verify_password(username, password):
    if username in users and check_password_hash(users.get(username), password):
        return username

def current_locale():
    return request.values.get('lang') or app.config['RESERVATION_LOCALE']

def save_pending(controller):
    if controller.form is None:
        session.pop(PENDING_KEY, None)
    else:
        session[PENDING_KEY] = {"date": controller.form.date.isoformat(), "fields": dict(controller.form.fields)}

# Use decorator to build the visitor's selection controller as g.controller within the request context.
# Slots come from the shared board, the open form from the visitor's session; both are written back afterwards.
def with_controller(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        board = app.extensions[BOARD_KEY]
        with board.lock:
            controller = SelectionController(
                today=board.today,
                closed_weekday=board.closed_weekday,
                sink=log_submission,
                phone_region=app.config['RESERVATION_PHONE_REGION'],
                check_deliverability=app.config['RESERVATION_CHECK_DELIVERABILITY'],
                locale=current_locale(),
                slots=board.slots,
            )
            controller.refresh(current_today(app))
            pending = session.get(PENDING_KEY)
            if pending:
                controller.restore(util.parse_day(pending["date"]), pending.get("fields", {}))
            g.controller = controller
            try:
                return f(*args, **kwargs)
            finally:
                board.today, board.slots = controller.today, controller.slots
                save_pending(controller)
    return decorated_function

def requested_anchor():
    """
    Anchor day from the date parameter, today if there is none. None if the date can't be parsed.
    """
    raw = request.values.get('date')
    if not raw:
        return g.controller.today
    try:
        return util.parse_day(raw)
    except ValueError:
        logger.info(f"Invalid date parameter: {raw!r}")
        return None

def calendar_args():
    """
    View, anchor and locale query parameters so redirects land back on the page the user was looking at.
    """
    args = {'view': request.values.get('view', booking_calendar.MONTH)}
    if request.values.get('date'):
        args['date'] = request.values['date']
    if request.values.get('lang'):
        args['lang'] = request.values['lang']
    return args

def render_calendar(anchor, errors=None, status=200):
    controller = g.controller
    locale = current_locale()
    view = request.values.get('view', booking_calendar.MONTH)
    if view not in booking_calendar.VIEWS:
        view = booking_calendar.MONTH
    page = booking_calendar.build_view(view, anchor, controller.status_of, controller.today)
    form = controller.form
    return render_template(
        'calendar.html',
        page=page,
        captions=messages.captions(locale),
        weekday_names=messages.weekday_names(locale),
        title=messages.format_title(page.anchor if view == booking_calendar.MONTH else page.first_day, view, locale),
        previous_date=booking_calendar.shift(view, anchor, -1).isoformat(),
        next_date=booking_calendar.shift(view, anchor, 1).isoformat(),
        form=form,
        bound_date=messages.format_bound_date(form.date, locale) if form else None,
        errors=errors or {},
        locale=locale,
        views=booking_calendar.VIEWS,
    ), status

@app.route('/')
def home():
    return redirect(url_for('get_calendar'))

# Reservation calendar. The reservation form is shown as a modal while a day is being booked.
@app.route("/calendar", methods=['GET'])
@with_controller
def get_calendar():
    anchor = requested_anchor()
    if anchor is None:
        flash(messages.captions(current_locale())['invalid_date'], "error")
        return redirect(url_for('get_calendar'))
    return render_calendar(anchor)

# Clicking a calendar cell. Unavailable days are ignored, available ones open the form.
@app.route("/calendar/select/<day>", methods=['POST'])
@with_controller
def select_day(day):
    try:
        selected = util.parse_day(day)
    except ValueError:
        flash(messages.captions(current_locale())['invalid_date'], "error")
        return redirect(url_for('get_calendar'))
    if g.controller.on_day_selected(selected):
        # Show the month the selected day is in
        return redirect(url_for('get_calendar', **{**calendar_args(), 'date': selected.isoformat()}))
    return redirect(url_for('get_calendar', **calendar_args()))

@app.route("/reservations", methods=['POST'])
@with_controller
def submit_reservation():
    try:
        g.controller.submit(request.form)
    except error_utils.ValidationError as e:
        # Form stays open, errors are shown inline
        return render_calendar(requested_anchor() or g.controller.today, errors=e.errors, status=422)
    except error_utils.ReservationStateError:
        flash(messages.captions(current_locale())['form_closed'], "error")
        return redirect(url_for('get_calendar', **calendar_args()))
    flash(messages.captions(current_locale())['completed'], "success")
    return redirect(url_for('get_calendar', **calendar_args()))

@app.route("/reservations/cancel", methods=['POST'])
@with_controller
def cancel_reservation():
    g.controller.cancel()
    return redirect(url_for('get_calendar', **calendar_args()))

# Slot statuses for the front-end in ISO format
@app.route("/api/slots", methods=['GET'])
@with_controller
def get_slots():
    return jsonify([slot.to_dict() for slot in g.controller.slots])

# Admin only: recompute the month from today, discarding reservations made so far
@app.route("/admin/availability/reset", methods=['POST'])
@auth.login_required
@with_controller
def reset_availability():
    g.controller.reset(current_today(app))
    flash(messages.captions(current_locale())['availability_reset'], "success")
    return redirect(url_for('get_calendar'))

@app.errorhandler(404)
def error_handler(error):
    flash(messages.captions(current_locale())['not_found'], "error")
    return redirect(url_for('get_calendar'))

if __name__ == '__main__':
    # production
    if os.environ.get('FLASK_ENV') == 'production':
       app.run(debug=False)
    else:
       toolbar = DebugToolbarExtension(app)
       app.run(debug=True, port=5003)
