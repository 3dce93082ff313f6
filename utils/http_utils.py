from flask import jsonify, request


def request_data():
    """JSON body if there is one, otherwise the submitted form"""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def json_success(message=None, status=200, **payload):
    body = {'success': True}
    if message:
        body['message'] = message
    body.update(payload)
    return jsonify(body), status


def json_error(message, status):
    return jsonify({'success': False, 'message': message}), status
