"""
Streamlit UI for the Custom Setup Configurator.

Features:
- Tabbed interface for Configurator, Catalog, and System Info
- Recorder / power tiers that follow the camera count
- Live MRP / sale / discount summary
- Export to CSV
"""
import streamlit as st
import sys
import json
from pathlib import Path
from datetime import datetime

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from setup_pricing.engine import ConfiguratorSession
from setup_pricing.engine.price_rules import format_discount_percent, format_inr
from setup_pricing.config.settings import configure_logging, get_settings
from setup_pricing.data.blueprint_loader import load_blueprint
from setup_pricing.data.catalog_export import catalog_to_frame, totals_to_frame


st.set_page_config(
    page_title="Custom Setup Configurator",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_settings_cached():
    """Get cached settings."""
    settings = get_settings()
    configure_logging(settings.log_level)
    return settings


@st.cache_resource
def get_blueprint(path: str, template_slug: str):
    """Get cached blueprint (None when the file is missing)."""
    return load_blueprint(Path(path), template_slug)


try:
    settings = get_settings_cached()
    blueprint = get_blueprint(str(settings.blueprint_path), settings.template_slug)
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()

if 'configurator' not in st.session_state:
    st.session_state.configurator = ConfiguratorSession(blueprint)

session: ConfiguratorSession = st.session_state.configurator
# Rebuilds only when the cached blueprint object changes
session.set_blueprint(blueprint)

SYSTEM_LABELS = {'analog': 'Analog (DVR)', 'ip': 'IP (NVR)'}
RESOLUTION_LABELS = {'2.4mp': '2.4 MP', '5mp': '5 MP', '2mp': '2 MP', '4mp': '4 MP'}


# ============================================================================
# SIDEBAR: Setup Basics
# ============================================================================
with st.sidebar:
    st.header("📹 Setup Basics")

    with st.container(border=True):
        system = st.radio(
            "System",
            options=list(SYSTEM_LABELS),
            format_func=SYSTEM_LABELS.get,
            index=list(SYSTEM_LABELS).index(session.state.system),
        )
        session.set_system(system)

        camera_count = st.number_input(
            "Cameras",
            min_value=session.rules.min_cameras,
            max_value=session.rules.max_cameras,
            value=session.state.camera_count,
            step=1,
        )
        session.set_camera_count(camera_count)

    st.divider()

    if blueprint is None:
        st.warning("⚠️ Using built-in pricing")
    else:
        st.success(f"🧩 **Blueprint:** {blueprint.name or blueprint.slug}")
        if session.catalog.notes:
            with st.expander(f"🔍 {len(session.catalog.notes)} fallback slots"):
                for note in session.catalog.notes:
                    st.caption(note)


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Custom Setup Configurator")
st.caption(f"Pricing Engine Active | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3 = st.tabs(["⚡ Configurator", "📚 Catalog", "📊 System"])


def _option_label(option_state) -> str:
    entry = option_state.entry
    label = f"{entry.label} - {option_state.quantity} × {format_inr(option_state.total_sale / option_state.quantity)}"
    if option_state.recommended:
        label += " (Recommended)"
    if option_state.disabled:
        label += " (Too small)"
    return label


def _sync_widget(key: str, current: str, option_states):
    """Point a keyed widget at the session's selection when its stored value went stale."""
    valid = {s.entry.id for s in option_states if not s.disabled}
    if st.session_state.get(key) not in valid:
        st.session_state[key] = current


# ============================================================================
# TAB 1: CONFIGURATOR
# ============================================================================
with tab1:
    active = session.state.system
    selections = session.state.selections

    col1, col2 = st.columns([1.8, 1.2], gap="large")

    with col1:
        st.subheader("Components")

        with st.container(border=True):
            st.markdown("##### Recorder")
            recorder_states = session.recorder_options()
            recorder_ids = [s.entry.id for s in recorder_states]
            _sync_widget(f"recorder_{active}", selections.recorder_id, recorder_states)
            chosen = st.radio(
                "Recorder",
                options=recorder_ids,
                format_func=lambda i: _option_label(recorder_states[recorder_ids.index(i)]),
                label_visibility="collapsed",
                key=f"recorder_{active}",
            )
            if chosen != selections.recorder_id and not session.select_recorder(chosen):
                st.warning("That recorder is too small for the camera count.")

        with st.container(border=True):
            st.markdown("##### Power" if active == 'analog' else "##### PoE Switch")
            power_states = session.power_options()
            power_ids = [s.entry.id for s in power_states]
            _sync_widget(f"power_{active}", selections.power_id, power_states)
            chosen = st.radio(
                "Power",
                options=power_ids,
                format_func=lambda i: _option_label(power_states[power_ids.index(i)]),
                label_visibility="collapsed",
                key=f"power_{active}",
            )
            if chosen != selections.power_id and not session.select_power(chosen):
                st.warning("That unit is too small for the camera count.")

        with st.container(border=True):
            st.markdown("##### Cameras")
            c1, c2 = st.columns(2)
            with c1:
                resolution = st.selectbox(
                    "Resolution",
                    options=list(selections.RESOLUTIONS),
                    index=list(selections.RESOLUTIONS).index(selections.resolution),
                    format_func=lambda r: RESOLUTION_LABELS.get(r, r),
                    key=f"resolution_{active}",
                )
                session.set_resolution(resolution)
            with c2:
                st.write("")
                dual_light = st.toggle("Dual-light", value=selections.dual_light, key=f"dual_{active}")
                session.set_dual_light(dual_light)

        with st.container(border=True):
            st.markdown("##### Cable")
            cable_states = session.cable_options()
            cable_ids = [s.entry.id for s in cable_states]
            chosen = st.selectbox(
                "Cable",
                options=cable_ids,
                index=cable_ids.index(selections.cable_id) if selections.cable_id in cable_ids else 0,
                format_func=lambda i: f"{cable_states[cable_ids.index(i)].entry.label} × {cable_states[cable_ids.index(i)].quantity}",
                label_visibility="collapsed",
                key=f"cable_{active}",
            )
            session.select_cable(chosen)

        with st.container(border=True):
            st.markdown("##### Add-ons")
            hdd_ids = [entry.id for entry in session.catalog.hdd_options]
            hdd_id = st.selectbox(
                "Storage",
                options=hdd_ids,
                index=hdd_ids.index(session.state.hdd_id) if session.state.hdd_id in hdd_ids else 0,
                format_func=lambda i: session.catalog.find_hdd(i).label,
            )
            session.select_hdd(hdd_id)

            monitor = session.catalog.monitor_option
            session.set_monitor_included(st.checkbox(
                f"{monitor.label} ({format_inr(monitor.sale)})", value=session.state.monitor_included,
            ))
            installation = session.catalog.installation_option
            session.set_installation_included(st.checkbox(
                f"{installation.label} ({format_inr(installation.sale)})", value=session.state.installation_included,
            ))

    with col2:
        st.subheader("Quote Summary")

        totals = session.totals()
        overall = totals.overall

        with st.container(border=True):
            m1, m2 = st.columns(2)
            m1.metric("Total", format_inr(overall.sale))
            m2.metric("MRP", format_inr(overall.mrp))

            if overall.discount_amount > 0:
                st.markdown(
                    f":green[**You Save: {format_inr(overall.discount_amount)} "
                    f"({format_discount_percent(overall.discount_percent)})**]"
                )

            st.divider()
            st.caption(f"**{SYSTEM_LABELS[active]}** for {session.state.camera_count} cameras")
            for line in totals.system.breakdown:
                st.caption(line)
            st.caption(f"{totals.hdd.label} ({format_inr(totals.hdd.sale)})")

            for warning in totals.warnings:
                st.warning(warning)

            st.divider()

            st.download_button(
                "📥 CSV",
                data=totals_to_frame(totals).to_csv(index=False),
                file_name=f"setup_quote_{active}_{session.state.camera_count}.csv",
                mime="text/csv",
                use_container_width=True
            )

        with st.expander("📊 View Detailed Pricing Trace"):
            st.text(totals.get_trace_text())


# ============================================================================
# TAB 2: CATALOG EXPLORER
# ============================================================================
with tab2:
    st.subheader("📚 Resolved Catalog")

    col1, col2 = st.columns([2, 1])
    with col1:
        search_term = st.text_input("Search Catalog", placeholder="Enter ID or label...", label_visibility="collapsed")
    with col2:
        system_filter = st.selectbox("System", ["ALL", "analog", "ip", "shared"], label_visibility="collapsed")

    catalog_display = catalog_to_frame(session.catalog)
    if search_term:
        mask = (
            catalog_display['ID'].str.contains(search_term, case=False, na=False) |
            catalog_display['Label'].str.contains(search_term, case=False, na=False)
        )
        catalog_display = catalog_display[mask]
    if system_filter != "ALL":
        catalog_display = catalog_display[catalog_display['System'] == system_filter]

    st.dataframe(catalog_display, use_container_width=True, height=600, hide_index=True)
    st.caption(f"Visible entries: {len(catalog_display):,}")


# ============================================================================
# TAB 3: SYSTEM INFO
# ============================================================================
with tab3:
    st.header("System Status")

    build_report_path = settings.build_report
    if build_report_path.exists():
        with open(build_report_path, 'r') as f:
            report = json.load(f)

        c1, c2, c3 = st.columns(3)
        c1.metric("Catalog Entries", f"{report['metrics'].get('entry_count', 0):,}")
        c2.metric("Fallback Slots", f"{report['metrics'].get('fallback_slots', 0):,}")
        c3.metric("Last Export", report.get('timestamp', '')[:10])

        for warning in report.get('warnings', []):
            st.caption(warning)
    else:
        st.info("No catalog export yet.")

    if st.button("🔨 Export Catalog", type="secondary"):
        with st.spinner("Exporting..."):
            import subprocess
            subprocess.run([sys.executable, 'scripts/export_catalog.py'], cwd=settings.project_root, capture_output=True)
            st.toast("Catalog exported successfully!")
            st.rerun()
