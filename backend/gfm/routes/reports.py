from flask import Blueprint, Response, request, jsonify
from flask_jwt_extended import jwt_required, current_user
from gfm.services import reports as report_service
from utils.access_control import Action
from utils.dates import parse_day
from utils.decorators import permission_required

reports_bp = Blueprint('reports', __name__)


@reports_bp.route('/daily/<date_str>', methods=['GET'])
@jwt_required()
@permission_required(Action.view_reports)
def daily_report(date_str):
    day = parse_day(date_str)
    batch_id = request.args.get('batch_id', type=int)

    report = report_service.daily_report(current_user, day, batch_id=batch_id)
    return jsonify({"success": True, **report}), 200


@reports_bp.route('/weekly', methods=['GET'])
@jwt_required()
@permission_required(Action.view_reports)
def weekly_report():
    start = parse_day(request.args.get('start'), "start")
    end = parse_day(request.args.get('end'), "end")
    batch_id = request.args.get('batch_id', type=int)

    report = report_service.weekly_report(current_user, start, end, batch_id=batch_id)

    if request.args.get('format') == 'csv':
        filename = f"attendance_{report['start_date']}_{report['end_date']}.csv"
        return Response(
            report_service.rows_to_csv(report["attendance"]),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    return jsonify({"success": True, **report}), 200
