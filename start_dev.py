#!/usr/bin/env python3
"""
Practice Financial Resiliency Assessment - Development Launcher

Prepares a local environment and either serves the JSON API or scores an
answer set from the command line.

Usage:
    python start_dev.py                          # Serve the API on 127.0.0.1:5101
    python start_dev.py --score                  # Score the built-in PT sample, then serve
    python start_dev.py --score answers.json --no-server
    python start_dev.py --score answers.json --pdf report.pdf --csv export.csv --no-server
"""

import os
import sys
import json
import argparse
import subprocess
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
REQUIRED_MODULES = ['flask', 'flask_limiter', 'fpdf', 'requests']


class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    BOLD = '\033[1m'
    END = '\033[0m'


SAMPLE_ANSWERS = {
    'practice_type': 'PT',
    'monthly_patient_billing': 85000,
    'patient_ar_days': 48,
    'hdhp_percentage': 35,
    'billing_staff_burden': 'part_of_roles',
    'unpaid_and_bad_debt': 'chase_manual',
    'billing_notification': 'paper_mailed',
    'bill_clarity': 'basic',
    'payment_options': ['front_desk', 'mail_check', 'portal'],
    'upfront_collection': 'copays_at_checkout',
    'billing_competitive': 'regular_neutral',
    'pt_copay_collection': 'sometimes',
}

SAMPLE_FORM = {'name': 'Sample Physical Therapy', 'email': '', 'organization': 'Sample PT Clinic'}


def status(message, state="running"):
    marks = {
        "running": f"{Colors.YELLOW}..{Colors.END}",
        "done": f"{Colors.GREEN}ok{Colors.END}",
        "skip": f"{Colors.BLUE}--{Colors.END}",
    }
    print(f"  [{marks.get(state, f'{Colors.RED}!!{Colors.END}')}] {message}")


def require_python(minimum=(3, 8)):
    if sys.version_info[:2] < minimum:
        status(f"Python {minimum[0]}.{minimum[1]}+ is required, found {sys.version.split()[0]}", "error")
        sys.exit(1)
    status(f"Python {sys.version_info.major}.{sys.version_info.minor}", "done")


def ensure_dependencies(skip=False):
    """Install the project in editable mode when a runtime module is missing"""
    if skip:
        status("Dependency check skipped", "skip")
        return

    missing = []
    for module in REQUIRED_MODULES:
        try:
            __import__(module)
        except ImportError:
            missing.append(module)

    if not missing:
        status("Dependencies present", "done")
        return

    status(f"Missing {', '.join(missing)}; installing project", "running")
    try:
        subprocess.check_call([sys.executable, '-m', 'pip', 'install', '-q', '-e', str(PROJECT_ROOT)])
    except subprocess.CalledProcessError as e:
        status(f"pip install failed: {e}", "error")
        sys.exit(1)
    status("Project installed", "done")


def configure_environment():
    os.environ.setdefault('FLASK_ENV', 'development')
    os.environ.setdefault('FLASK_APP', 'web.app:app')
    os.environ.setdefault('LOG_LEVEL', 'INFO')
    if str(PROJECT_ROOT) not in sys.path:
        sys.path.insert(0, str(PROJECT_ROOT))
    status(f"FLASK_ENV={os.environ['FLASK_ENV']}", "done")


def load_answers(path):
    """Answers from a JSON file; either a bare answers object or {"answers": ..., "form": ...}"""
    if path is None:
        return SAMPLE_ANSWERS, SAMPLE_FORM

    with open(path) as f:
        data = json.load(f)
    if 'answers' in data:
        return data['answers'], data.get('form', {})
    return data, {}


def score_answers(answers, form, pdf_path=None, csv_path=None):
    """Print the headline results and optionally write the PDF and CSV exports"""
    from src.assessment.assessment_engine import get_assessment_engine
    from src.reporting.export import generate_csv, generate_results_summary, prepare_export_data
    from src.reporting.pdf_report import generate_pdf_report

    engine = get_assessment_engine()
    result = engine.assess(answers)
    summary = generate_results_summary(
        result.scores, result.insights, result.recommendations,
        result.resiliency, result.score_level.label
    )

    print(f"\n    {Colors.BOLD}{summary['headline']}{Colors.END} ({result.resiliency.level})")
    print(f"    {result.segment_label}: readiness {result.scores.overall}/100, {result.score_level.label}")
    for category in result.projection.category_improvements:
        print(f"      {category.name:<32} {category.current:>3} -> {category.projected:>3}")
    print(f"    Projected readiness: {result.projection.projected_overall}/100")
    print(f"    Annual opportunity: ${result.insights.total_financial_opportunity:,}")
    for title in summary['top_recommendations']:
        print(f"      {Colors.CYAN}*{Colors.END} {title}")
    print()

    if pdf_path:
        Path(pdf_path).write_bytes(generate_pdf_report(form, result, category_names=engine.catalog.category_names))
        status(f"PDF report written to {pdf_path}", "done")
    if csv_path:
        Path(csv_path).write_text(generate_csv(prepare_export_data(form, result, engine.catalog)))
        status(f"CSV export written to {csv_path}", "done")

    return result


def serve(host, port):
    from web.app import create_app

    app = create_app()
    print(f"\n{Colors.GREEN}{'-' * 60}{Colors.END}")
    print(f"  {Colors.BOLD}Assessment API{Colors.END}  http://{host}:{port}/api/segments")
    print(f"{Colors.GREEN}{'-' * 60}{Colors.END}\n")
    app.run(debug=True, host=host, port=port, use_reloader=True)


def main():
    parser = argparse.ArgumentParser(description='Practice Financial Resiliency Assessment launcher')
    parser.add_argument('--score', nargs='?', const='', metavar='ANSWERS_JSON',
                        help='Score an answers file, or the built-in sample when no file is given')
    parser.add_argument('--pdf', metavar='PATH', help='Write the PDF report for the scored answers')
    parser.add_argument('--csv', metavar='PATH', help='Write the CSV export for the scored answers')
    parser.add_argument('--no-server', action='store_true', help='Exit after scoring')
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind to (default: 127.0.0.1)')
    parser.add_argument('--port', type=int, default=5101, help='Port to serve on (default: 5101)')
    parser.add_argument('--skip-install', action='store_true', help='Do not check or install dependencies')
    args = parser.parse_args()

    print(f"\n{Colors.BOLD}Practice Financial Resiliency Assessment{Colors.END}")
    require_python()
    ensure_dependencies(skip=args.skip_install)
    configure_environment()

    if args.score is not None:
        answers, form = load_answers(args.score or None)
        status(f"Scoring {args.score or 'built-in sample'}", "running")
        score_answers(answers, form, pdf_path=args.pdf, csv_path=args.csv)
    elif args.pdf or args.csv:
        status("--pdf and --csv need --score", "error")
        sys.exit(2)

    if args.no_server:
        return

    try:
        serve(args.host, args.port)
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}Server stopped.{Colors.END}")


if __name__ == '__main__':
    main()
