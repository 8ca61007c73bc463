"""
Rule-based consultation summary drafts.

Keyword matching over the doctor's free-text notes. Each detected condition
rewrites parts of the draft; conditions are applied in a fixed order, so a
later match overrides fields set by an earlier one. The doctor reviews and
edits the draft before it is saved as a ConsultationSummary.
"""
from typing import Dict, Optional

from ..schemas.consultation_summary import SummaryDraft, SummaryDraftRequest

CONDITION_KEYWORDS = {
    "headache": ("headache", "head pain", "migraine"),
    "bp": ("bp", "blood pressure", "hypertension"),
    "diabetes": ("diabetes", "blood sugar", "glucose"),
    "respiratory": ("cough", "breathing", "asthma", "wheez"),
    "skin": ("rash", "skin", "eczema"),
    "mental": ("anxiety", "depression", "stress", "sleep"),
    "gastro": ("stomach", "nausea", "bowel", "abdomen"),
    "musculo": ("pain", "back", "joint", "muscle"),
    "infection": ("infection", "fever", "temperature", "antibiotic"),
}


def detect_conditions(notes: str) -> Dict[str, bool]:
    lowered = notes.lower()
    return {
        name: any(keyword in lowered for keyword in keywords)
        for name, keywords in CONDITION_KEYWORDS.items()
    }


def _headache(d: dict, notes: str, request: SummaryDraftRequest) -> None:
    d["diagnosis"] = "Tension-type headache / Cephalgia under investigation"
    d["symptoms"] = (request.current_symptoms or "") + " Patient reports headaches as described. Duration and pattern noted."
    d["examination"] += " Neurological assessment: no focal deficits observed. Cranial nerves grossly intact."
    d["treatment"] = (
        "1. Analgesic therapy as prescribed\n"
        "2. Headache diary to track frequency, triggers, and severity\n"
        "3. Lifestyle modifications including stress management and adequate hydration"
    )
    d["medications"] = "Paracetamol 1g QDS PRN (max 4g/24hrs). Consider Ibuprofen 400mg TDS with food if paracetamol insufficient."
    d["lifestyle"] = "Maintain regular sleep schedule (7-8 hours). Stay well hydrated (2L water daily). Regular breaks from screen work. Consider relaxation techniques."
    d["education"] = "Headaches can have multiple triggers including stress, dehydration, poor posture, and eye strain. Keeping a headache diary will help identify patterns."
    d["follow_up_notes"] = "Review in 2 weeks with headache diary. If headaches worsen or are accompanied by visual changes, seek urgent attention."
    d["red_flags"] = "Seek immediate attention if: sudden severe headache, headache with fever and neck stiffness, visual disturbances, weakness or numbness, confusion."
    if "refer" in notes or "neuro" in notes:
        d["referral_required"] = True
        d["referral_specialty"] = "Neurology"
        d["referral_notes"] = "For specialist assessment if symptoms persist despite initial management."


def _blood_pressure(d: dict, notes: str, request: SummaryDraftRequest) -> None:
    stage = "Stage 1" if ("140" in notes or "high" in notes) else "Under review"
    d["diagnosis"] = f"Hypertension - {stage}"
    d["symptoms"] += " Elevated blood pressure readings noted."
    d["examination"] += " Blood pressure measured and recorded."
    d["treatment"] = (
        "1. Lifestyle modifications as first-line\n"
        "2. Home BP diary\n"
        "3. Consider pharmacological intervention if insufficient after 3 months"
    )
    d["medications"] += "\nConsider Amlodipine 5mg OD or Ramipril 2.5mg OD if BP remains elevated."
    d["lifestyle"] = "Reduce sodium (<6g/day). Regular exercise (150 mins/week). Maintain healthy BMI. Limit alcohol. DASH diet recommended."
    d["education"] = "High blood pressure usually has no symptoms but increases risk of heart disease and stroke. Regular monitoring is essential."
    d["follow_up_notes"] = "Review in 2-4 weeks with home BP diary. Fasting bloods if not done recently."
    d["red_flags"] = "Seek urgent attention if: severe headache with BP >180/120, chest pain, visual disturbance, breathlessness."


def _respiratory(d: dict, notes: str, request: SummaryDraftRequest) -> None:
    kind = "asthma exacerbation" if "asthma" in notes else "respiratory tract condition"
    d["diagnosis"] = f"Respiratory symptoms - possible {kind}"
    d["symptoms"] += " Respiratory symptoms including cough and/or breathing difficulty."
    d["examination"] += " Respiratory assessment conducted. Auscultation findings noted."
    d["treatment"] = (
        "1. Bronchodilator therapy if indicated\n"
        "2. Monitor symptoms and peak flow\n"
        "3. Smoking cessation if applicable"
    )
    d["medications"] = (
        "Salbutamol inhaler 100mcg 2 puffs PRN via spacer."
        if "inhaler" in notes else "Respiratory medication as discussed."
    )
    d["lifestyle"] = "Avoid known triggers. Good ventilation. Annual flu vaccination. Smoking cessation if applicable."
    d["red_flags"] = "Seek emergency care if: severe breathlessness, unable to complete sentences, blue lips, chest pain, or peak flow <50%."


def _mental_health(d: dict, notes: str, request: SummaryDraftRequest) -> None:
    d["diagnosis"] = (
        "Generalised Anxiety Disorder (assessment)"
        if "anxiety" in notes else "Low mood / Depression screen"
    )
    d["symptoms"] += " Psychological symptoms affecting daily functioning."
    d["examination"] += " Mental state examination conducted. Appearance and behaviour appropriate."
    d["treatment"] = (
        "1. Consider CBT referral via IAPT\n"
        "2. Self-help resources provided\n"
        "3. Medication review if symptoms persist"
    )
    d["medications"] = (
        "Sertraline 50mg OD. Review in 2 weeks."
        if "sertraline" in notes else "Non-pharmacological approaches first line."
    )
    d["lifestyle"] = "Regular physical activity. Maintain social connections. Limit alcohol/caffeine. Sleep hygiene. Mindfulness techniques."
    d["education"] = "Mental health conditions are common and treatable. NHS IAPT services available for talking therapies."
    d["follow_up_notes"] = "Review in 2 weeks to assess mood. PHQ-9/GAD-7 to be repeated."
    d["red_flags"] = "If experiencing thoughts of self-harm, contact NHS 111, Samaritans (116 123), or attend A&E."
    d["referral_required"] = True
    d["referral_specialty"] = "IAPT / Psychological Services"
    d["referral_notes"] = "For CBT or counselling as appropriate."


def _infection(d: dict, notes: str, request: SummaryDraftRequest) -> None:
    if "uti" in notes:
        likely = "urinary tract infection"
    elif "throat" in notes:
        likely = "pharyngitis"
    else:
        likely = "infection under assessment"
    d["diagnosis"] = f"Infection - likely {likely}"
    d["symptoms"] += " Signs of infection as described."
    d["examination"] += " Temperature noted. Relevant examination conducted."
    d["treatment"] = (
        "1. Antibiotic therapy if bacterial\n"
        "2. Adequate hydration and rest\n"
        "3. Symptomatic relief"
    )
    d["medications"] = "Antibiotic as prescribed - complete full course. Paracetamol for fever/pain."
    d["follow_up_notes"] = "Review if not improving within 48-72 hours, or sooner if deteriorating."
    d["red_flags"] = "Seek urgent attention if: fever >39°C not responding to paracetamol, rash, confusion, severe pain."


def _gastro(d: dict, notes: str, request: SummaryDraftRequest) -> None:
    d["diagnosis"] = "Gastrointestinal symptoms under investigation"
    d["symptoms"] += " GI symptoms as described."
    d["examination"] += " Abdominal assessment conducted."
    d["treatment"] = (
        "1. Dietary modifications\n"
        "2. Symptomatic relief\n"
        "3. Further investigation if persistent"
    )
    d["medications"] = "Antacid/PPI as appropriate. Anti-emetic if nausea persists."
    d["lifestyle"] = "Regular balanced meals. Avoid trigger foods. Adequate hydration. Stress management."
    d["red_flags"] = "Seek urgent attention if: severe abdominal pain, vomiting blood, black tarry stools, persistent vomiting."


def _musculoskeletal(d: dict, notes: str, request: SummaryDraftRequest) -> None:
    if "back" in notes:
        site = "back pain"
    elif "joint" in notes:
        site = "joint pain"
    else:
        site = "pain"
    d["diagnosis"] = f"Musculoskeletal {site} - mechanical/non-specific"
    d["symptoms"] += " Pain as described. Onset, character, and aggravating factors noted."
    d["examination"] += " Musculoskeletal assessment conducted. Range of movement noted."
    d["treatment"] = (
        "1. Analgesia as prescribed\n"
        "2. Physiotherapy referral if appropriate\n"
        "3. Activity modification advice"
    )
    d["medications"] = "Paracetamol 1g QDS. Ibuprofen 400mg TDS with food. Consider topical NSAIDs."
    d["lifestyle"] = "Stay active within comfort limits. Gentle stretching and exercises. Good posture. Ergonomic workplace setup."
    d["red_flags"] = "Seek urgent attention if: loss of bladder/bowel control, progressive weakness, unexplained weight loss, night pain."


# Application order; diabetes and skin only count as "detected"
RULES = (
    ("headache", _headache),
    ("bp", _blood_pressure),
    ("respiratory", _respiratory),
    ("mental", _mental_health),
    ("infection", _infection),
    ("gastro", _gastro),
    ("musculo", _musculoskeletal),
)


def _allergy_line(allergies: Optional[str]) -> str:
    if allergies and allergies != "None reported":
        return f"Known allergies: {allergies}."
    return "NKDA."


def draft_summary(request: SummaryDraftRequest) -> SummaryDraft:
    doctor_notes = request.doctor_notes
    notes = doctor_notes.lower()
    consultation_type = request.consultation_type or "video"

    d = {
        "diagnosis": "Clinical assessment based on presenting symptoms",
        "symptoms": request.chief_complaint or "As described in consultation",
        "examination": f"General examination conducted via {consultation_type} consultation.",
        "treatment": "Treatment plan discussed with patient.",
        "medications": request.current_medications or "As prescribed",
        "lifestyle": "General health and wellbeing advice provided.",
        "education": "Patient informed about their condition and management plan.",
        "follow_up_notes": "Review in 2 weeks to assess progress.",
        "referral_required": False,
        "referral_specialty": "",
        "referral_notes": "",
        "red_flags": "",
    }

    conditions = detect_conditions(doctor_notes)
    for name, rule in RULES:
        if conditions[name]:
            rule(d, notes, request)

    if not any(conditions.values()):
        d["diagnosis"] = f"Clinical assessment - {request.chief_complaint or 'symptoms as described'}"
        d["symptoms"] = request.current_symptoms or doctor_notes[:200]
        d["treatment"] = f"Management plan as discussed. {doctor_notes[:300]}"
        d["follow_up_notes"] = "Review as clinically indicated."
        d["red_flags"] = "Return or seek urgent care if symptoms worsen or new concerning symptoms develop."

    additional = (
        f"Summary generated from {consultation_type} consultation. "
        f"{_allergy_line(request.allergies)}"
    )

    return SummaryDraft(
        diagnosis=d["diagnosis"],
        symptoms_presented=d["symptoms"].strip(),
        examination_findings=d["examination"].strip(),
        treatment_plan=d["treatment"].strip(),
        medications_prescribed=d["medications"].strip(),
        lifestyle_recommendations=d["lifestyle"].strip(),
        patient_education=d["education"].strip(),
        follow_up_required=True,
        follow_up_notes=d["follow_up_notes"],
        follow_up_timeframe="2 weeks",
        referral_required=d["referral_required"],
        referral_specialty=d["referral_specialty"],
        referral_notes=d["referral_notes"],
        red_flags=d["red_flags"],
        additional_notes=additional.strip(),
    )
