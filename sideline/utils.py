from functools import wraps
from flask import session, redirect, url_for, request, jsonify

def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not session.get('admin'):
            if request.is_json or request.accept_mimetypes.best == 'application/json':
                return jsonify({'error': 'Login required'}), 401
            return redirect(url_for('auth.login', next=request.path))
        return f(*args, **kwargs)
    return wrapper
