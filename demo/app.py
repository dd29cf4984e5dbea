import os
import datetime
import streamlit as st
import httpx
import pandas as pd

st.set_page_config(page_title="Gymbro", layout="wide")
st.markdown("<h1 style='color:#2eb5a3;'>Gymbro - Chapters. Check-ins. Consistency.</h1>",
            unsafe_allow_html=True)
st.caption("Personal performance tracker. Not medical advice.")

api = st.sidebar.text_input("API Base URL", os.getenv("API_URL", "http://127.0.0.1:8030"))

FOCUS = ["drainage", "strength", "maintenance"]
ALCOHOL = ["none", "low", "moderate", "high"]
APOLOGY = "Sorry, I encountered an error. Please try again."


def request(method: str, url: str, **kwargs):
    kwargs.setdefault("timeout", 60.0)
    return httpx.request(method, url, **kwargs)


def headers():
    tok = st.session_state.get("token")
    return {"Authorization": f"Bearer {tok}"} if tok else {}


def show_error(r):
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    st.error(detail if isinstance(detail, str) else str(detail))


try:
    health = request('GET', api + "/health").json()
except httpx.HTTPError as e:
    st.error(f"API unreachable: {e}")
    st.stop()
mock_mode = bool(health.get("mock_mode"))
if mock_mode:
    st.sidebar.info("Mock mode: data lives in the API process and resets on restart.")
    st.session_state.setdefault("token", "mock")


# ---- Links coming back from email / Google ----
params = st.query_params
if "access_token" in params:
    st.session_state["token"] = params["access_token"]
    st.query_params.clear()
    st.rerun()
if "magic_token" in params:
    r = request('POST', api + "/auth/magic-link/verify", json={"token": params["magic_token"]})
    st.query_params.clear()
    if r.status_code == 200:
        st.session_state["token"] = r.json()["access_token"]
        st.rerun()
    else:
        show_error(r)
if "reset_token" in params:
    st.markdown("<h2 style='color:#fdd365;'>Choose a new password</h2>", unsafe_allow_html=True)
    new_pw = st.text_input("New password", type="password")
    if st.button("Set password"):
        r = request('POST', api + "/auth/password-reset/confirm",
                    json={"token": params["reset_token"], "new_password": new_pw})
        if r.status_code == 200:
            st.session_state["token"] = r.json()["access_token"]
            st.query_params.clear()
            st.success("Password updated")
            st.rerun()
        else:
            show_error(r)
    st.stop()


# ---- Auth ----
if "token" not in st.session_state:
    st.markdown("<h2 style='color:#fdd365;'>Sign in</h2>", unsafe_allow_html=True)
    email = st.text_input("Email")
    password = st.text_input("Password", type="password")
    c1, c2, c3, c4, c5 = st.columns(5)
    with c1:
        if st.button("Sign in"):
            r = request('POST', api + "/auth/login", json={"email": email, "password": password})
            if r.status_code == 200:
                st.session_state["token"] = r.json()["access_token"]
                st.rerun()
            else:
                show_error(r)
    with c2:
        if st.button("Sign up"):
            r = request('POST', api + "/auth/register", json={"email": email, "password": password})
            if r.status_code == 200:
                st.session_state["token"] = r.json()["access_token"]
                st.rerun()
            else:
                show_error(r)
    with c3:
        if st.button("Email me a link"):
            r = request('POST', api + "/auth/magic-link", json={"email": email})
            if r.status_code == 200:
                st.success("Check your email for a sign-in link.")
            else:
                show_error(r)
    with c4:
        if st.button("Forgot password"):
            r = request('POST', api + "/auth/password-reset", json={"email": email})
            if r.status_code == 200:
                st.success("If that account exists, a reset link is on its way.")
            else:
                show_error(r)
    with c5:
        r = request('GET', api + "/auth/oauth/google")
        if r.status_code == 200:
            st.link_button("Continue with Google", r.json()["url"])
    st.stop()

if not mock_mode and st.sidebar.button("Sign out"):
    st.session_state.pop("token", None)
    st.session_state.pop("messages", None)
    st.rerun()


# ---- Profile (onboarding when missing) ----
rp = request('GET', api + "/profile", headers=headers())
if rp.status_code == 401:
    st.session_state.pop("token", None)
    st.rerun()
profile = rp.json() if rp.status_code == 200 else None


def profile_form(current, new_user: bool):
    current = current or {}
    with st.form("profile"):
        age = st.number_input("Age", min_value=10, max_value=120, value=int(current.get("age") or 30))
        height = st.number_input("Height (cm)", min_value=51.0, max_value=272.0,
                                 value=float(current.get("height") or 175.0), step=0.5)
        weight = st.number_input("Weight (kg)", min_value=21.0, max_value=400.0,
                                 value=float(current.get("weight") or 75.0), step=0.1)
        injury = st.text_input("Injuries / limitations", value=current.get("injury_notes") or "")
        goal = st.text_input("Long-term goal", value=current.get("long_term_goal") or "")
        if st.form_submit_button("Save profile"):
            r = request('PUT', api + "/profile", json={
                "age": int(age), "height": float(height), "weight": float(weight),
                "injury_notes": injury.strip() or None, "long_term_goal": goal.strip(),
            }, headers=headers())
            if r.status_code != 200:
                show_error(r)
                return
            if new_user:
                request('POST', api + "/chapters/defaults", headers=headers())
            st.success("Profile saved")
            st.rerun()


if profile is None:
    st.markdown("<h2 style='color:#9b8cff;'>Welcome! Tell us about yourself</h2>", unsafe_allow_html=True)
    profile_form(None, new_user=True)
    st.stop()

with st.sidebar.expander("Edit profile"):
    profile_form(profile, new_user=False)


# ---- Dashboard ----
st.divider()
dash = request('GET', api + "/dashboard", headers=headers())
if dash.status_code != 200:
    show_error(dash)
    st.stop()
dash = dash.json()
st.markdown("<h2 style='color:#3478e5;'>Dashboard</h2>", unsafe_allow_html=True)
st.caption(profile.get("long_term_goal") or "")
m1, m2, m3 = st.columns(3)
m1.metric("Total XP", dash["profile"]["xp"])
m2.metric("Day streak", dash["profile"]["soft_streaks"])
m3.metric("Missed days", dash["missed_days"])

active = dash["active_chapter"]
if active:
    st.write(f"**Active chapter:** {active['chapter_name']} ({active['focus']})")
    st.progress(active["progress"],
                text=f"Day {active['days_elapsed']} of {active['duration']} — {round(active['progress'] * 100)}%")
else:
    st.info("No active chapter. Activate one below.")

if not dash["has_checked_in_today"]:
    st.warning("You haven't checked in today.")

history = request('GET', api + "/check-ins", headers=headers())
if history.status_code == 200 and history.json():
    df = pd.DataFrame(history.json())
    df["date"] = pd.to_datetime(df["date"])
    st.line_chart(df.set_index("date").sort_index()[["weight"]])


# ---- Daily check-in ----
st.divider()
st.markdown("<h2 style='color:#1aaf5d;'>Daily check-in</h2>", unsafe_allow_html=True)
st.caption(datetime.date.today().strftime("%A, %B %d"))
summary = request('GET', api + "/check-ins/summary", headers=headers()).json()
prefill = summary.get("today") or summary.get("last") or {}
if summary.get("today"):
    st.info("You already checked in today. Submitting again will update your entry.")

with st.form("check_in"):
    weight = st.number_input("Weight (kg)", min_value=21.0, max_value=400.0,
                             value=float(prefill.get("weight") or profile.get("weight") or 75.0), step=0.1)
    bloating = st.select_slider("Bloating level", options=[1, 2, 3, 4, 5], value=int(prefill.get("bloating_level") or 3))
    energy = st.select_slider("Energy level", options=[1, 2, 3, 4, 5], value=int(prefill.get("energy") or 3))
    alcohol = st.radio("Alcohol", ALCOHOL, horizontal=True,
                       index=ALCOHOL.index(prefill.get("alcohol_intake") or "none"))
    moved = st.checkbox("Movement done", value=bool(prefill.get("movement_done")))
    notes = st.text_input("Note (optional)", value=(summary.get("today") or {}).get("notes") or "")
    if st.form_submit_button("Submit check-in"):
        r = request('POST', api + "/check-ins", json={
            "weight": float(weight), "bloating_level": int(bloating), "energy": int(energy),
            "alcohol_intake": alcohol, "movement_done": bool(moved), "notes": notes.strip() or None,
        }, headers=headers())
        if r.status_code == 200:
            gained = r.json()["xp_gained"]
            st.success(f"Check-in complete! +{gained} XP" if gained else "Check-in updated.")
            st.rerun()
        else:
            show_error(r)


# ---- Chapters ----
st.divider()
st.markdown("<h2 style='color:#e85b81;'>Chapters</h2>", unsafe_allow_html=True)

with st.expander("New chapter"):
    with st.form("new_chapter"):
        name = st.text_input("Name")
        duration = st.number_input("Duration (days)", min_value=7, max_value=365, value=30)
        focus = st.selectbox("Focus", FOCUS)
        if st.form_submit_button("Add chapter"):
            r = request('POST', api + "/chapters",
                        json={"chapter_name": name.strip(), "duration": int(duration), "focus": focus},
                        headers=headers())
            if r.status_code == 200:
                st.success("Chapter added")
                st.rerun()
            else:
                show_error(r)

STATUS_ICON = {"active": "🟢", "paused": "🟡", "completed": "⚪"}

lr = request('GET', api + "/chapters", headers=headers())
if lr.status_code == 200:
    for ch in lr.json():
        box = st.container(border=True)
        c1, c2, c3 = box.columns([5, 3, 2])
        with c1:
            st.write(f"{STATUS_ICON[ch['status']]} **{ch['chapter_name']}** — {ch['focus']}, {ch['duration']} days")
            if ch["start_date"]:
                st.progress(ch["progress"], text=f"Day {ch['days_elapsed']} of {ch['duration']}")
            else:
                st.caption("Not started")
        with c2:
            actions = {
                "active": [("Pause", "paused"), ("Complete", "completed")],
                "paused": [("Activate", "active")],
                "completed": [("Restart", "paused")],
            }[ch["status"]]
            for label, status in actions:
                if st.button(label, key=f"{status}_{ch['id']}"):
                    r = request('POST', api + f"/chapters/{ch['id']}/status",
                                json={"status": status}, headers=headers())
                    if r.status_code == 200:
                        st.rerun()
                    else:
                        show_error(r)
            with st.popover("Edit"):
                new_name = st.text_input("Name", value=ch["chapter_name"], key=f"name_{ch['id']}")
                new_duration = st.number_input("Duration (days)", min_value=7, max_value=365,
                                               value=int(ch["duration"]), key=f"dur_{ch['id']}")
                new_focus = st.selectbox("Focus", FOCUS, index=FOCUS.index(ch["focus"]), key=f"focus_{ch['id']}")
                if st.button("Save", key=f"save_{ch['id']}"):
                    r = request('PUT', api + f"/chapters/{ch['id']}", json={
                        "chapter_name": new_name.strip(), "duration": int(new_duration), "focus": new_focus,
                    }, headers=headers())
                    if r.status_code == 200:
                        st.rerun()
                    else:
                        show_error(r)
        with c3:
            pending = st.session_state.get("confirm_delete") == ch["id"]
            if not pending:
                if st.button("Delete", key=f"del_{ch['id']}"):
                    st.session_state["confirm_delete"] = ch["id"]
                    st.rerun()
            else:
                st.warning("Delete this chapter?")
                if st.button("Yes, delete", key=f"del_yes_{ch['id']}"):
                    dr = request('DELETE', api + f"/chapters/{ch['id']}", headers=headers())
                    st.session_state.pop("confirm_delete", None)
                    if dr.status_code == 200:
                        st.success("Deleted")
                        st.rerun()
                    else:
                        show_error(dr)
                if st.button("Cancel", key=f"del_no_{ch['id']}"):
                    st.session_state.pop("confirm_delete", None)
                    st.rerun()
else:
    show_error(lr)


# ---- Coach ----
st.divider()
show_chat = st.toggle("Talk to your coach", value=False)
if show_chat:
    st.markdown("<h2 style='color:#d4a017;'>Coach</h2>", unsafe_allow_html=True)
    if "messages" not in st.session_state:
        st.session_state.messages = []

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    if prompt := st.chat_input("Ask about training, recovery or your chapter..."):
        st.session_state.messages.append({"role": "user", "content": prompt})
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                try:
                    r = request('POST', api + "/coach/chat",
                                json={"messages": st.session_state.messages}, headers=headers())
                    reply = r.json()["reply"] if r.status_code == 200 else APOLOGY
                except httpx.HTTPError:
                    reply = APOLOGY
            st.markdown(reply)
        st.session_state.messages.append({"role": "assistant", "content": reply})
