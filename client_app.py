"""
Claimant Portal - Death Claim Submission App

A mobile-friendly Streamlit application for submitting life insurance death claims.
Connects to the claim adjudication FastAPI backend.
"""
from typing import Dict, Optional

import streamlit as st

from lifeclaim.portal_client import DEFAULT_API_URL, ClaimApiClient, ClaimApiError, FilePart

# ============================================
# CONFIGURATION
# ============================================

DOCUMENT_UPLOADS = [
    ("claimForm", "Claim Form *", True),
    ("deathCertificate", "Death Certificate", False),
    ("doctorReport", "Doctor / Hospital Report", False),
    ("policeReport", "Police Report", False),
]

STATUS_STYLES = {
    "APPROVED": "status-approved",
    "REJECTED": "status-rejected",
    "MANUAL_REVIEW": "status-review",
}


def get_client() -> ClaimApiClient:
    """Get an API client for the URL held in session state."""
    return ClaimApiClient(st.session_state.get("api_url", DEFAULT_API_URL))


# ============================================
# PAGE CONFIG & STYLING
# ============================================

st.set_page_config(
    page_title="LifeClaim - Submit a Death Claim",
    page_icon="📄",
    layout="centered",
    initial_sidebar_state="collapsed"
)

st.markdown("""
<style>
    .main-header {
        background: linear-gradient(135deg, #2c3e50 0%, #4b6584 100%);
        padding: 2rem;
        border-radius: 16px;
        color: white;
        text-align: center;
        margin-bottom: 2rem;
    }

    .main-header h1 {
        margin: 0;
        font-size: 2rem;
        font-weight: 700;
    }

    .status-badge {
        display: inline-block;
        padding: 0.5rem 1rem;
        border-radius: 20px;
        font-weight: 600;
        text-transform: uppercase;
    }

    .status-approved {
        background: #e8f5e9;
        color: #388e3c;
    }

    .status-review {
        background: #fff3e0;
        color: #f57c00;
    }

    .status-rejected {
        background: #ffebee;
        color: #d32f2f;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)


# ============================================
# UI COMPONENTS
# ============================================

def render_header():
    """Render the main header."""
    st.markdown("""
    <div class="main-header">
        <h1>LifeClaim</h1>
        <p>Submit a life insurance death claim</p>
    </div>
    """, unsafe_allow_html=True)


def render_decision(result: dict):
    """Render the adjudication decision returned by the API."""
    decision = result.get("status", "UNKNOWN")
    badge = STATUS_STYLES.get(decision, "status-review")

    st.markdown(
        f'<span class="status-badge {badge}">{decision.replace("_", " ")}</span>',
        unsafe_allow_html=True
    )
    st.write(result.get("message", ""))

    reference = result.get("claimReference")
    if reference:
        st.info(f"Claim reference: **{reference}**. Keep it for follow-up enquiries.")
    else:
        st.warning("No claim was recorded for this submission.")


def render_lookup():
    """Look up a previously submitted claim."""
    st.subheader("🔎 Check a Claim")
    reference = st.text_input("Claim reference", placeholder="e.g., CLM-20260042")

    if st.button("Look up") and reference:
        try:
            record = get_client().get_claim(reference.strip())
        except ClaimApiError as e:
            st.error(f"Failed to look up claim: {str(e)}")
            return

        if record is None:
            st.warning(f"No claim found for {reference}")
            return

        render_decision({
            "status": record.get("decision"),
            "message": record.get("reason"),
            "claimReference": record.get("claim_reference"),
        })
        st.caption(f"Filed {record.get('created_at')} against policy {record.get('policy_number')}")


def render_submission_form():
    """Render the claim submission form."""
    st.subheader("📝 Submit a Claim")

    with st.form("claim_form"):
        st.markdown("**Policy**")
        policy_number = st.text_input("Policy Number *", placeholder="e.g., P001")
        policy_holder_name = st.text_input("Policy Holder Name")
        cause_of_death = st.text_input("Cause of Death")

        st.divider()
        st.markdown("**Deceased**")
        deceased_full_name = st.text_input("Full Name")
        deceased_email = st.text_input("Email")
        deceased_mobile = st.text_input("Mobile")
        deceased_address = st.text_area("Address", height=80)

        st.divider()
        st.markdown("**Nominee**")
        nominee_full_name = st.text_input("Nominee Full Name")
        nominee_relationship = st.text_input("Relationship to Deceased")
        nominee_mobile = st.text_input("Nominee Mobile")

        st.divider()
        st.markdown("**📎 Documents**")
        uploads = {
            key: st.file_uploader(label, type=["jpg", "jpeg", "png", "txt"], key=f"upload_{key}")
            for key, label, _ in DOCUMENT_UPLOADS
        }

        submitted = st.form_submit_button("Submit Claim", use_container_width=True)

    if not submitted:
        return

    if not policy_number:
        st.error("Please enter the policy number.")
        return
    if uploads["claimForm"] is None:
        st.error("Please attach the completed claim form.")
        return

    fields = {
        "policyNumber": policy_number,
        "policyHolderName": policy_holder_name,
        "causeOfDeath": cause_of_death,
        "deceasedFullName": deceased_full_name,
        "deceasedEmail": deceased_email,
        "deceasedMobile": deceased_mobile,
        "deceasedAddress": deceased_address,
        "nomineeFullName": nominee_full_name,
        "nomineeRelationship": nominee_relationship,
        "nomineeMobile": nominee_mobile,
    }
    documents: Dict[str, Optional[FilePart]] = {
        key: (upload.name, upload.getvalue(), upload.type or "application/octet-stream")
        for key, upload in uploads.items()
        if upload is not None
    }

    with st.spinner("Reading documents and assessing the claim. This can take a few minutes..."):
        try:
            result = get_client().submit_claim(fields, documents)
        except ClaimApiError as e:
            st.error(f"Failed to submit claim: {str(e)}")
            return

    st.session_state.last_result = result
    render_decision(result)


# ============================================
# MAIN APPLICATION
# ============================================

def main():
    """Main application entry point."""
    if "last_result" not in st.session_state:
        st.session_state.last_result = None

    with st.sidebar:
        st.header("⚙️ Settings")
        st.session_state.api_url = st.text_input(
            "API Server URL",
            value=DEFAULT_API_URL,
            help="URL of the claim adjudication backend"
        )

        if st.button("Test Connection"):
            if get_client().health():
                st.success("Connected!")
            else:
                st.error("Cannot reach server")

    render_header()

    submit_tab, lookup_tab = st.tabs(["Submit", "Track"])
    with submit_tab:
        render_submission_form()
    with lookup_tab:
        render_lookup()


if __name__ == "__main__":
    main()
