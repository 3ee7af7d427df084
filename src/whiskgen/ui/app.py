"""Gradio UI for WhiskGen."""

import logging

import gradio as gr

from whiskgen.core.config import config

from .handlers import (
    RETRY_LABEL,
    clear_jobs,
    count_prompts,
    download_selected_image,
    generate_batch,
    load_credentials,
    refresh_gallery,
    remove_reference_image,
    retry_failed_jobs,
    save_credentials,
)
from .models import ASPECT_RATIOS, JOB_TABLE_HEADERS, UIState, aspect_ratio_label

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_ui() -> tuple[gr.Blocks, str]:
    """Create the Gradio UI.

    Returns:
        Tuple of (Gradio Blocks app, custom CSS string)
    """
    custom_css = """
    .prompt-count {
        text-align: right;
        opacity: 0.6;
    }
    """

    app = gr.Blocks(title="WhiskGen")

    with app:
        # Session state - one queue per user
        ui_state = gr.State(UIState())

        gr.Markdown(
            """
            # WhiskGen
            ### Bulk prompt-to-image generation
            """
        )

        settings = create_settings_section(ui_state)

        with gr.Row():
            with gr.Column(scale=1):
                gr.Markdown("### Reference Subject")
                reference_image = gr.Image(
                    label="Reference image (optional)",
                    type="filepath",
                    sources=["upload", "clipboard"],
                    height=250,
                )
                remove_image_btn = gr.Button("Remove reference image", size="sm")

                aspect_ratio = gr.Radio(
                    label="Aspect Ratio",
                    choices=list(ASPECT_RATIOS),
                    value=aspect_ratio_label(config.default_aspect_ratio),
                )

            with gr.Column(scale=2):
                gr.Markdown("### Bulk Prompts")
                prompts_input = gr.Textbox(
                    label="Prompts",
                    placeholder=(
                        "Enter prompts (one per line)...\n"
                        "A futuristic city made of crystal\n"
                        "A cat wearing a spacesuit\n"
                        "Cyberpunk street food vendor"
                    ),
                    lines=10,
                )
                prompt_count = gr.Markdown("0 prompts", elem_classes=["prompt-count"])
                generate_btn = gr.Button("▶ Generate All", variant="primary")

        status_output = gr.Markdown(value="*Ready to generate images*")

        gr.Markdown("### Generation Gallery")
        stats_output = gr.Markdown()
        with gr.Row():
            retry_btn = gr.Button(RETRY_LABEL, variant="stop", size="sm", visible=False)
            clear_btn = gr.Button("🧹 Clear", size="sm", visible=False)

        gallery = gr.Gallery(
            label="Results (click an image to download it)",
            height=500,
            columns=4,
            object_fit="cover",
        )
        download_file = gr.File(label="Download", interactive=False)

        with gr.Accordion("Job Queue", open=False):
            job_table = gr.Dataframe(
                headers=JOB_TABLE_HEADERS,
                datatype=["str", "str", "str", "str"],
                interactive=False,
                wrap=True,
            )

        # Poll the job queue so background progress reaches the browser
        timer = gr.Timer(config.gallery_refresh_seconds)
        gallery_outputs = [gallery, job_table, stats_output, retry_btn, clear_btn, ui_state]

        # Event handlers
        prompts_input.change(
            fn=count_prompts,
            inputs=[prompts_input],
            outputs=[prompt_count],
        )

        remove_image_btn.click(
            fn=remove_reference_image,
            inputs=[],
            outputs=[reference_image],
        )

        generate_btn.click(
            fn=generate_batch,
            inputs=[prompts_input, reference_image, aspect_ratio, ui_state],
            outputs=[prompts_input, status_output, settings["accordion"], ui_state],
        ).then(
            fn=refresh_gallery,
            inputs=[ui_state],
            outputs=gallery_outputs,
        )

        retry_btn.click(
            fn=retry_failed_jobs,
            inputs=[ui_state],
            outputs=[status_output, settings["accordion"], ui_state],
        ).then(
            fn=refresh_gallery,
            inputs=[ui_state],
            outputs=gallery_outputs,
        )

        clear_btn.click(
            fn=clear_jobs,
            inputs=[ui_state],
            outputs=[status_output, ui_state],
        ).then(
            fn=refresh_gallery,
            inputs=[ui_state],
            outputs=gallery_outputs,
        )

        gallery.select(
            fn=download_selected_image,
            inputs=[ui_state],
            outputs=[download_file, ui_state],
        )

        timer.tick(
            fn=refresh_gallery,
            inputs=[ui_state],
            outputs=gallery_outputs,
            show_progress="hidden",
        )

        # Fill the settings form from the saved record on page load
        app.load(
            fn=load_credentials,
            inputs=[ui_state],
            outputs=[
                settings["bearer_token"],
                settings["session_token"],
                settings["workflow_id"],
                ui_state,
            ],
        )

    return app, custom_css


def create_settings_section(ui_state) -> dict:
    """Create the collapsible credentials form.

    Args:
        ui_state: UI state component

    Returns:
        Dictionary of the components other handlers need
    """
    with gr.Accordion("⚙ Settings", open=False) as accordion:
        gr.Markdown(
            "**How to get these credentials:**\n\n"
            "1. Go to [labs.google](https://labs.google) and log in.\n"
            "2. Open Developer Tools (F12) → Network tab.\n"
            "3. Generate an image there.\n"
            "4. Find a request to `generateImage` or `runImageRecipe`.\n"
            "5. Copy the `Authorization` header (bearer token), the "
            "`__Secure-next-auth.session-token` cookie and the `workflowId` from the payload."
        )
        bearer_token = gr.Textbox(
            label="Bearer Token (Authorization header)",
            type="password",
            placeholder="ya29...",
        )
        session_token = gr.Textbox(
            label="Session Token (Cookie: __Secure-next-auth.session-token)",
            type="password",
            placeholder="eyJhbGci...",
        )
        workflow_id = gr.Textbox(
            label="Workflow ID",
            placeholder="UUID...",
        )
        save_btn = gr.Button("Save Configuration", variant="primary")
        settings_status = gr.Markdown()

    save_btn.click(
        fn=save_credentials,
        inputs=[bearer_token, session_token, workflow_id, ui_state],
        outputs=[settings_status, ui_state],
    )

    return {
        "accordion": accordion,
        "bearer_token": bearer_token,
        "session_token": session_token,
        "workflow_id": workflow_id,
    }


def main():
    """Main entry point for the application."""
    logger.info("Starting WhiskGen...")
    logger.info(f"Configuration: {config.model_dump()}")

    app, custom_css = create_ui()

    logger.info(f"Launching Gradio UI on {config.gradio_server_name}:{config.gradio_server_port}")

    app.launch(
        server_name=config.gradio_server_name,
        server_port=config.gradio_server_port,
        share=config.gradio_share,
        show_error=True,
        inbrowser=False,
        css=custom_css,
    )


if __name__ == "__main__":
    main()
