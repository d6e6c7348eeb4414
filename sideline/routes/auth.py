from flask import Blueprint, current_app, jsonify, request, session, redirect, url_for

bp = Blueprint('auth', __name__)

@bp.route('/login', methods=['GET', 'POST'])
def login():
    # simple admin login (credentials can be set via env vars ADMIN_USER and ADMIN_PASS)
    if request.method == 'GET':
        return jsonify({'message': 'POST username and password to log in', 'next': request.args.get('next') or ''})

    user = request.form.get('username', '').strip()
    pw = request.form.get('password', '').strip()
    admin_user = current_app.config.get('ADMIN_USER', 'admin')
    admin_pass = current_app.config.get('ADMIN_PASS', 'password')

    if user != admin_user or pw != admin_pass:
        return jsonify({'error': 'Invalid credentials'}), 401

    session['admin'] = True
    next_url = request.args.get('next') or request.form.get('next')
    # Only follow local paths
    if next_url and next_url.startswith('/') and not next_url.startswith('//'):
        return redirect(next_url)
    return jsonify({'message': 'Logged in'})


@bp.route('/logout', methods=['GET'])
def logout():
    session.pop('admin', None)
    return redirect(url_for('main.index'))
