import os

import streamlit as st
import requests

API_BASE = os.getenv("RULEBOOK_API_BASE", "http://localhost:3000/api")

st.set_page_config(page_title="Rulebook Assistant", layout="centered")

st.title("📖 Rulebook Assistant")

st.write("Ask a question about the rulebook.")


# ---------- Chat Section ----------
question = st.text_input("Enter your question")

if st.button("Ask"):
    if not question.strip():
        st.warning("Enter a question")
    else:
        with st.spinner("Loading..."):
            try:
                res = requests.post(f"{API_BASE}/ask", json={"question": question})
            except requests.RequestException as e:
                res = None
                st.error(f"Error: {e}")

        if res is not None:
            if res.status_code == 200:
                data = res.json()
                st.markdown(f"### Answer\n{data['answer']}")
            else:
                st.error(f"Error: Server error: {res.status_code}")
                st.code(res.text)
