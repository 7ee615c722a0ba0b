"""
Practice Financial Resiliency Assessment Questions

Questionnaire tables, organized as a four-act flow:
1. The financial picture (diagnostic inputs, unscored)
2. How billing is handled today
3. Competitive impact
4. Segment-specific questions

Each question has:
- ID, answer type and the segments it applies to
- Question text, help text and industry context
- Options with scores (single) or points (multi), or a numeric range
- A primary category and optional positional cross-category weights
- Optional conditional display rule and auto score used while hidden

The tables are plain data; ``catalog.load_catalog`` turns them into
validated, immutable definitions.
"""

from typing import Dict, List, Any, Optional

# Category indices: 0 = Revenue Cycle Resilience, 1 = Patient Payment Experience,
# 2 = Competitive Position
CATEGORY_NAMES = [
    "Revenue Cycle Resilience",
    "Patient Payment Experience",
    "Competitive Position",
]

# Research sources behind recommendation and projection figures, keyed by source_ref
SOURCE_CITATIONS: Dict[int, Dict[str, Any]] = {
    1: {"label": "Experian Health", "url": "https://www.experian.com/healthcare/", "year": 2024},
    2: {"label": "MGMA", "url": "https://www.mgma.com/", "year": 2024},
    3: {"label": "Becker's Hospital Review", "url": "https://www.beckershospitalreview.com/", "year": 2024},
    4: {"label": "Kaiser Family Foundation", "url": "https://www.kff.org/", "year": 2025},
    5: {"label": "HFMA", "url": "https://www.hfma.org/", "year": 2024},
    6: {"label": "McKinsey & Company", "url": "https://www.mckinsey.com/", "year": 2024},
    7: {"label": "JPMorgan Health", "url": "https://www.jpmorgan.com/", "year": 2024},
    8: {"label": "PatientPay Client Data", "url": "https://www.patientpay.com/", "year": 2025},
    9: {"label": "Change Healthcare", "url": "https://www.changehealthcare.com/", "year": 2024},
    10: {"label": "Waystar", "url": "https://www.waystar.com/", "year": 2024},
    11: {"label": "Crowe RCA", "url": "https://www.crowe.com/", "year": 2024},
}


def get_citation(source_ref: Optional[int]) -> Optional[Dict[str, Any]]:
    """Citation for a source_ref, with its id, or None when unknown."""
    citation = SOURCE_CITATIONS.get(source_ref) if source_ref is not None else None
    if citation is None:
        return None
    return dict(citation, id=source_ref)


SEGMENT_KEYS = ["practice_type", "facility_type"]
DEFAULT_SEGMENT = "PP"

SEGMENTS: Dict[str, Dict[str, Any]] = {
    "PP": {
        "id": "PP",
        "label": "Physician Practice / Primary Care",
        "description": "Family medicine, internal medicine, pediatrics, or multi-specialty group practice",
        "category_weights": [0.40, 0.35, 0.25],
        "target_ar_days": 35,
        "characteristics": {
            "payer_mix": "70% commercial / 25% Medicare / 5% self-pay",
            "ar_days_range": "30-40 days optimal, <50 acceptable",
            "collection_rate": "95% minimum, 97-99% optimal",
            "bad_debt": "<3% of expected collections",
            "key_focus": "AR days reduction, payment flexibility, patient retention"
        }
    },
    "PT": {
        "id": "PT",
        "label": "Physical Therapy / Rehab",
        "description": "Outpatient physical therapy, occupational therapy, or rehabilitation clinic",
        "category_weights": [0.40, 0.35, 0.25],
        "target_ar_days": 25,
        "characteristics": {
            "payer_mix": "60% commercial / 30% Medicare / 10% self-pay",
            "ar_days_range": "<35 days optimal, ~20 in EDI-mandated states",
            "collection_rate": "95%+ net collection rate",
            "copay_collection": "90%+ at date of service",
            "key_focus": "Copay collection per visit, recurring visit billing, HDHP management"
        }
    },
    "BH": {
        "id": "BH",
        "label": "Behavioral / Mental Health",
        "description": "Psychiatry, psychology, counseling, substance abuse treatment, or behavioral health practice",
        "category_weights": [0.35, 0.40, 0.25],
        "target_ar_days": 30,
        "characteristics": {
            "payer_mix": "50% commercial / 20% Medicare-Medicaid / 30% self-pay",
            "ar_days_range": "65-75 days average, <30 optimal",
            "no_show_rate": "20-30% (higher than other specialties)",
            "key_focus": "High AR days, cost barrier reduction, no-show management"
        }
    },
    "UC": {
        "id": "UC",
        "label": "Urgent Care",
        "description": "Walk-in urgent care clinic or freestanding emergency center",
        "category_weights": [0.40, 0.35, 0.25],
        "target_ar_days": 25,
        "characteristics": {
            "payer_mix": "55% commercial / 20% Medicare-Medicaid / 25% self-pay",
            "ar_days_range": "<25 days optimal for self-pay, <40 for insurance",
            "pos_collection": "70-85% of patient responsibility at time of service",
            "key_focus": "Point-of-service collection, self-pay management, high volume throughput"
        }
    },
    "ASC": {
        "id": "ASC",
        "label": "Ambulatory Surgery Center",
        "description": "Outpatient surgical center performing same-day procedures",
        "category_weights": [0.40, 0.30, 0.30],
        "target_ar_days": 25,
        "characteristics": {
            "payer_mix": "65% commercial / 30% Medicare / 5% self-pay",
            "ar_days_range": "15-20 days Medicare, 21-45 days commercial",
            "revenue_per_case": "$1,500-$3,000 net per case",
            "key_focus": "Upfront collection, high-value balances, pre-procedure financial clearance"
        }
    },
    "FC": {
        "id": "FC",
        "label": "Fertility Clinic",
        "description": "Reproductive endocrinology, IVF, egg freezing, or fertility treatment center",
        "category_weights": [0.35, 0.40, 0.25],
        "target_ar_days": 30,
        "characteristics": {
            "payer_mix": "25% insured / 75% self-pay or partial coverage",
            "ar_days_range": "<30 days optimal (pre-collection model)",
            "avg_cycle_cost": "$15,000-$30,000 per IVF cycle",
            "key_focus": "High-value payment plans, financing clarity, upfront collections"
        }
    },
}

ALL_SEGMENTS = list(SEGMENTS.keys())


def _autopay_enrollment_score(value: float) -> int:
    if value >= 50:
        return 95
    if value >= 30:
        return 70
    if value >= 15:
        return 45
    return 20


ASSESSMENT_QUESTIONS: List[Dict[str, Any]] = [
    # Routing
    {
        "id": "practice_type",
        "text": "Which best describes your practice?",
        "help_text": "Your answer tailors the questions and benchmarks to your segment.",
        "type": "single",
        "is_routing": True,
        "category_index": None,
        "segments": ALL_SEGMENTS,
        "options": [
            {"value": seg["id"], "label": seg["label"], "description": seg["description"]}
            for seg in SEGMENTS.values()
        ]
    },

    # Act 1: the financial picture
    {
        "id": "monthly_patient_billing",
        "text": "Approximately how much patient responsibility are you billing each month?",
        "help_text": "After insurance pays their share, this is the amount your practice has to collect "
                     "directly from patients: copays, deductibles, coinsurance, and self-pay balances.",
        "type": "currency",
        "is_diagnostic": True,
        "category_index": None,
        "segments": ALL_SEGMENTS,
        "min": 5000,
        "max": 500000,
        "step": 5000,
        "default": 75000,
        "industry_context": "This is the revenue that depends entirely on your patients paying you."
    },
    {
        "id": "patient_ar_days",
        "text": "How long does it take to actually get paid by patients?",
        "help_text": "From when a patient balance is created to when payment hits your account.",
        "type": "slider",
        "is_diagnostic": True,
        "category_index": None,
        "segments": ALL_SEGMENTS,
        "min": 10,
        "max": 120,
        "step": 1,
        "default": 45,
        "unit": " days",
        "industry_context": "71% of providers take 30+ days to collect after a patient encounter."
    },
    {
        "id": "hdhp_percentage",
        "text": "What percentage of your patients are on high-deductible health plans?",
        "help_text": "HDHP patients owe significantly more out-of-pocket, so more of your revenue "
                     "depends on patients paying you directly.",
        "type": "slider",
        "is_diagnostic": True,
        "category_index": None,
        "segments": ALL_SEGMENTS,
        "min": 0,
        "max": 80,
        "step": 5,
        "default": 30,
        "unit": "%",
        "industry_context": "HDHP enrollment jumped from 27% to 33% in one year. Average deductible is now $1,886."
    },
    {
        "id": "billing_staff_burden",
        "text": "How many staff members spend significant time on patient billing: chasing payments, "
                "answering billing questions, posting payments, managing plans?",
        "help_text": "Count anyone who spends more than a quarter of their time on billing-related work.",
        "type": "single",
        "category_index": 0,
        "category_weights": [0.70, 0.30],
        "segments": ALL_SEGMENTS,
        "options": [
            {"value": "3_plus", "label": "3 or more: multiple people spend most of their day on billing tasks", "score": 10},
            {"value": "1_2_dedicated", "label": "1-2 dedicated billing staff whose primary job is patient collections", "score": 30},
            {"value": "part_of_roles", "label": "Part of other roles: billing is folded into front desk and admin duties", "score": 55},
            {"value": "minimal_automated", "label": "Minimal: billing mostly runs itself, staff focuses on patient care", "score": 90},
        ],
        "industry_context": "Labor represents up to 84% of practice expenses, and operating costs rose 11% last year."
    },
    {
        "id": "unpaid_and_bad_debt",
        "text": "When a patient balance goes unpaid, what happens, and how much do you ultimately write off?",
        "help_text": "This is where patient revenue either gets recovered or becomes bad debt.",
        "type": "single",
        "category_index": 0,
        "category_weights": [0.65, 0.35],
        "segments": ALL_SEGMENTS,
        "options": [
            {"value": "write_off_high", "label": "Send more statements, write off most of it; bad debt over 5%", "score": 10},
            {"value": "chase_manual", "label": "Staff calls and follows up; write-offs are 3-5%", "score": 30},
            {"value": "collections_agency", "label": "Internal efforts first, then collections agency; write-offs 2-3%", "score": 45},
            {"value": "automated_low", "label": "Automated reminders with payment plan offers; write-offs under 2%", "score": 85},
            {"value": "not_sure", "label": "Not sure: we follow up but don't closely track what we lose", "score": 20},
        ],
        "industry_context": "The average practice collects just 24 cents on every dollar of patient responsibility."
    },

    # Act 2: how billing is handled today
    {
        "id": "billing_notification",
        "text": "How do patients find out they owe you money, and how quickly?",
        "help_text": "Think about the journey from when a balance is created to when a patient can act on it.",
        "type": "single",
        "category_index": 0,
        "category_weights": [0.40, 0.60],
        "segments": ALL_SEGMENTS,
        "options": [
            {"value": "paper_mailed", "label": "Paper statements mailed; patients find out weeks after service", "score": 10},
            {"value": "paper_plus_portal", "label": "Paper statements plus patient portal notifications", "score": 30},
            {"value": "email_digital", "label": "Email notifications with payment links, plus portal access", "score": 55},
            {"value": "immediate_digital", "label": "Immediate text or email the moment a balance is ready, with a link to pay", "score": 90},
        ],
        "industry_context": "98% of text messages are read within 90 seconds. Paper statements take 7-14 days to arrive."
    },
    {
        "id": "bill_clarity",
        "text": "How clear and easy to understand are your patient bills?",
        "help_text": "Can a patient immediately understand what they owe, why, and how to pay?",
        "type": "single",
        "category_index": 1,
        "category_weights": [0.35, 0.65],
        "segments": ALL_SEGMENTS,
        "options": [
            {"value": "confusing", "label": "Complex: patients often call confused about charges", "score": 10},
            {"value": "basic", "label": "Standard format: shows charges and total but patients sometimes struggle", "score": 35},
            {"value": "clear", "label": "Fairly clear: itemized with descriptions, most patients understand", "score": 65},
            {"value": "excellent", "label": "Very clear: plain language, visual breakdown, easy to pay", "score": 95},
        ],
        "industry_context": "37% of patients have missed medical bills because the payment process was too confusing."
    },
    {
        "id": "payment_options",
        "text": "When a patient is ready to pay, what options do they have?",
        "help_text": "It's 9pm. Your patient just opened their bill on their phone. What can they do right now?",
        "type": "multi",
        "category_index": 1,
        "category_weights": [0.30, 0.70],
        "segments": ALL_SEGMENTS,
        "max_score": 100,
        "options": [
            {"value": "front_desk", "label": "Pay at the front desk / in person", "points": 10},
            {"value": "mail_check", "label": "Mail a check", "points": 5},
            {"value": "phone", "label": "Call and pay by phone during business hours", "points": 10},
            {"value": "portal", "label": "Pay through patient portal", "points": 15},
            {"value": "text_to_pay", "label": "Click a link in a text or email and pay instantly", "points": 25},
            {"value": "mobile_wallet", "label": "Pay with mobile wallet (Apple Pay, Google Pay)", "points": 10},
            {"value": "hsa_fsa", "label": "HSA/FSA cards accepted", "points": 10},
            {"value": "payment_plan", "label": "Set up a payment plan online", "points": 15},
            {"value": "autopay", "label": "Enroll in autopay: bills paid automatically", "points": 20},
        ],
        "industry_context": "Most patient payments now happen on mobile devices, and 92% of consumers use digital payments daily."
    },
    {
        "id": "autopay_plan_setup",
        "text": "You offer autopay and/or payment plans. How automated is the experience?",
        "help_text": "Think about both the patient's setup experience and the ongoing management by your staff.",
        "type": "single",
        "category_index": 1,
        "category_weights": [0.50, 0.50],
        "is_sub_question": True,
        "segments": ALL_SEGMENTS,
        "conditional": {
            "question_id": "payment_options",
            "show_if_includes_any": ["autopay", "payment_plan"]
        },
        "options": [
            {"value": "mostly_manual", "label": "Mostly manual: staff sets up plans, cards on file but not truly automatic", "score": 25},
            {"value": "semi_automated", "label": "Semi-automated: plans auto-debit but staff sets them up", "score": 50},
            {"value": "fully_self_service", "label": "Fully self-service: patients enroll themselves and everything runs automatically", "score": 90},
        ],
        "auto_score": {"when_hidden": True, "score": 5},
        "industry_context": "Self-service plans have 3-4x higher completion rates than manual ones."
    },
    {
        "id": "autopay_enrollment",
        "text": "What percentage of your patients are currently enrolled in autopay?",
        "help_text": "Having autopay available and having patients enrolled are two very different things.",
        "type": "slider",
        "category_index": 1,
        "category_weights": [0.50, 0.50],
        "is_sub_question": True,
        "segments": ALL_SEGMENTS,
        "conditional": {
            "question_id": "autopay_plan_setup",
            "show_if_includes_any": ["fully_self_service", "semi_automated"]
        },
        "min": 0,
        "max": 80,
        "step": 5,
        "default": 10,
        "unit": "%",
        "scoring": _autopay_enrollment_score,
        "auto_score": {"when_hidden": True, "score": 5},
        "industry_context": "High-performing practices achieve 40-60% autopay enrollment."
    },
    {
        "id": "upfront_collection",
        "text": "Do patients know what they'll owe, and do you collect before or after service?",
        "help_text": "Think about cost estimates before the visit and collection at time of service.",
        "type": "single",
        "category_index": 2,
        "category_weights": [0.35, 0.25, 0.40],
        "segments": ALL_SEGMENTS,
        "options": [
            {"value": "bill_after", "label": "No estimates: patients find out what they owe when the bill arrives", "score": 10},
            {"value": "copays_at_checkout", "label": "Copays at checkout, deductibles and coinsurance billed later", "score": 30},
            {"value": "verify_and_collect", "label": "Verify eligibility and collect known amounts at check-in", "score": 55},
            {"value": "proactive_full", "label": "Cost estimates before the visit and full collection at check-in", "score": 90},
        ],
        "industry_context": "80% of patients list upfront cost estimates as a major factor in choosing a clinician."
    },
    {
        "id": "convenience_fee",
        "text": "Credit card fees cost your practice 2.5-3.5% on every card payment. How do you handle that?",
        "help_text": "On $1M in annual card payments, that's $25,000-$35,000 in processing fees.",
        "type": "single",
        "category_index": 0,
        "segments": ALL_SEGMENTS,
        "conditional": {
            "question_id": "payment_options",
            "show_if_includes_any": ["front_desk", "portal", "text_to_pay", "mobile_wallet"]
        },
        "options": [
            {"value": "absorb", "label": "We absorb all processing fees as a cost of doing business", "score": 40},
            {"value": "considering", "label": "We're considering passing fees to patients but haven't implemented", "score": 50},
            {"value": "yes_basic", "label": "Yes, we pass fees to patients who pay by card", "score": 70},
            {"value": "yes_compliant", "label": "Yes, a compliant surcharging program that offsets costs", "score": 90},
        ],
        "auto_score": {"when_hidden": True, "score": 30},
        "industry_context": "Compliant surcharging can recover $15,000-$50,000+ annually in processing fees."
    },

    # Act 3: competitive impact
    {
        "id": "billing_competitive",
        "text": "How often do patients contact your office about billing confusion, and does billing "
                "come up in your online reviews?",
        "help_text": "Your billing process is part of your brand whether you manage it or not.",
        "type": "single",
        "category_index": 2,
        "category_weights": [0, 0.40, 0.60],
        "segments": ALL_SEGMENTS,
        "options": [
            {"value": "frequent_negative", "label": "Frequent billing calls, some negative reviews", "score": 10},
            {"value": "regular_neutral", "label": "Regular billing calls, but reviews rarely mention billing", "score": 30},
            {"value": "occasional", "label": "Occasional billing questions, rarely causes issues", "score": 60},
            {"value": "rare_positive", "label": "Rare billing questions; patients compliment how easy it is to pay", "score": 90},
        ],
        "industry_context": "56% of patients would switch providers after a poor billing experience."
    },

    # Act 4: segment-specific
    {
        "id": "pt_copay_collection",
        "text": "How consistently do you collect copays at each visit?",
        "help_text": "PT patients typically have 12-15 visits per episode of care.",
        "type": "single",
        "category_index": 0,
        "segments": ["PT"],
        "options": [
            {"value": "rarely", "label": "Rarely: we usually bill copays later", "score": 10},
            {"value": "sometimes", "label": "Sometimes: depends on the front desk staff and the day", "score": 30},
            {"value": "usually", "label": "Usually: we collect most copays at check-in", "score": 60},
            {"value": "always", "label": "Always: 90%+ copay collection rate at time of service", "score": 90},
        ],
        "industry_context": "Missing copays at $50/visit over 12 visits is $600 in delayed collections per episode."
    },
    {
        "id": "bh_noshow_management",
        "text": "How do you handle the financial impact of no-shows and late cancellations?",
        "help_text": "Behavioral health has significantly higher no-show rates than other specialties.",
        "type": "single",
        "category_index": 0,
        "segments": ["BH"],
        "options": [
            {"value": "nothing", "label": "We don't charge; patients just reschedule", "score": 10},
            {"value": "policy_not_enforced", "label": "We have a policy but rarely enforce it", "score": 25},
            {"value": "manual_charge", "label": "We charge no-show fees manually when we can", "score": 50},
            {"value": "automated", "label": "Card on file with clear policy, auto-charge for no-shows", "score": 85},
        ],
        "industry_context": "Behavioral health practices average 20-30% no-show rates."
    },
    {
        "id": "bh_affordability",
        "text": "How do you make ongoing care affordable for patients who struggle with costs?",
        "help_text": "Patients who stop treatment due to cost become lost revenue and worse outcomes.",
        "type": "single",
        "category_index": 1,
        "segments": ["BH"],
        "options": [
            {"value": "no_options", "label": "No real options; patients either pay or stop coming", "score": 15},
            {"value": "discounts_case_by_case", "label": "Discounts or sliding scale case by case", "score": 35},
            {"value": "standard_plans", "label": "Standard payment plan options we present to patients", "score": 60},
            {"value": "proactive_multiple", "label": "Payment plans, autopay, sliding scale, and help finding assistance", "score": 90},
        ],
        "industry_context": "42% of patients cite cost as a barrier to mental health care."
    },
    {
        "id": "uc_selfpay_process",
        "text": "How do you handle self-pay and uninsured patients?",
        "help_text": "Urgent care sees a higher percentage of self-pay patients than most specialties.",
        "type": "single",
        "category_index": 0,
        "segments": ["UC"],
        "options": [
            {"value": "bill_later", "label": "We provide service and bill them later", "score": 10},
            {"value": "collect_some", "label": "We try to collect a deposit at time of service", "score": 35},
            {"value": "upfront_pricing", "label": "Transparent self-pay pricing and collection at time of service", "score": 60},
            {"value": "optimized", "label": "Upfront pricing, immediate digital payment, plans for higher balances", "score": 90},
        ],
        "industry_context": "Urgent care centers see 15-25% self-pay patients, growing 8% year over year."
    },
    {
        "id": "asc_financial_clearance",
        "text": "Do you verify patient financial responsibility and collect before the procedure?",
        "help_text": "ASC cases can be $1,500-$3,000+ in patient responsibility.",
        "type": "single",
        "category_index": 0,
        "segments": ["ASC"],
        "options": [
            {"value": "after_service", "label": "We bill patients after the procedure", "score": 10},
            {"value": "partial_upfront", "label": "We collect estimated copay/deductible at check-in", "score": 35},
            {"value": "pre_service", "label": "We verify benefits and collect before the procedure date", "score": 65},
            {"value": "comprehensive", "label": "Financial counseling, pre-authorization and full collection before procedure", "score": 90},
        ],
        "industry_context": "ASC net revenue averages $1,500-$3,000 per case."
    },
    {
        "id": "fc_financial_counseling",
        "text": "Do you provide financial counseling to help patients plan for treatment costs?",
        "help_text": "Fertility treatment is one of the most expensive healthcare journeys patients face.",
        "type": "single",
        "category_index": 1,
        "segments": ["FC"],
        "options": [
            {"value": "none", "label": "No: patients receive cost information at time of service only", "score": 10},
            {"value": "basic", "label": "Basic: cost sheets and answers to questions", "score": 30},
            {"value": "dedicated", "label": "Dedicated financial coordinator who walks through costs and options", "score": 65},
            {"value": "comprehensive", "label": "Proactive counseling, financing options, insurance advocacy, and plans", "score": 90},
        ],
        "industry_context": "70%+ of fertility patients report financial stress."
    },
    {
        "id": "fc_bundled_pricing",
        "text": "Do you offer bundled or package pricing for fertility treatments?",
        "type": "single",
        "category_index": 2,
        "category_weights": [0.30, 0.30, 0.40],
        "segments": ["FC"],
        "options": [
            {"value": "no", "label": "No: all services billed individually", "score": 10},
            {"value": "basic_bundles", "label": "Some basic packages but pricing isn't very transparent", "score": 35},
            {"value": "clear_bundles", "label": "Clear bundled pricing with financing options available", "score": 65},
            {"value": "comprehensive", "label": "Comprehensive packages with shared-risk programs and flexible financing", "score": 90},
        ],
        "industry_context": "Bundled pricing is the predominant model in fertility."
    },
]
